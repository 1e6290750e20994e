import logging

logger = logging.getLogger('ispdesk')
