# utils/errors.py


class PromiseError(Exception):
    status_code = 500
    code = 'INTERNAL_ERROR'

    def __init__(self, message, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self):
        return {'success': False, 'error': self.code, 'message': self.message, **self.extra}


class ValidationError(PromiseError):
    status_code = 400
    code = 'VALIDATION_ERROR'


class NotFound(PromiseError):
    status_code = 404
    code = 'NOT_FOUND'


class UserAlreadyExists(PromiseError):
    status_code = 409
    code = 'USER_EXISTS'


class PromiseWindowActive(PromiseError):
    status_code = 409
    code = 'PROMISE_WINDOW_ACTIVE'


class InvitationResolved(PromiseError):
    status_code = 409
    code = 'INVITATION_RESOLVED'
