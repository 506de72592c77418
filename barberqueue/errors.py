# barberqueue/errors.py


class BarberQueueError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(BarberQueueError):
    status_code = 404


class ConflictError(BarberQueueError):
    status_code = 409


class PermissionDeniedError(BarberQueueError):
    status_code = 403


class ValidationError(BarberQueueError):
    status_code = 422


class ProfileCreationError(BarberQueueError):
    status_code = 500
