from rest_framework import status
from rest_framework.exceptions import APIException


class UniqueConstraintIntegrityError(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The request could not be completed due to a conflict with the current state of the resource"
    default_code = "unique_conflict"


class ExternalServiceError(APIException):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "External service failed to handle the request"
    default_code = "external_service_error"


class ProcessIsBusy(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Same process is already running, try later"
    default_code = "process_busy"
