from .radius_commands import (
    RadiusInteract,
    finish_session,
    change_session_rate_limit,
    RadiusSessionNotFoundException,
    RadiusTimeoutException,
    RadiusInvalidRequestException,
    RadiusMissingAttributeException,
    RadiusBaseException
)

__all__ = ['RadiusInteract', 'finish_session', 'change_session_rate_limit',
           'RadiusSessionNotFoundException', 'RadiusTimeoutException',
           'RadiusInvalidRequestException', 'RadiusMissingAttributeException',
           'RadiusBaseException']
