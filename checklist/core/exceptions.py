# checklist/core/exceptions.py

class BaseAppException(Exception):
    """Базовый класс для всех кастомных исключений приложения."""
    def __init__(self, message: str = "App exception"):
        super().__init__(message)
        self.message = message

# ==== Валидация ====

class ValidationError(BaseAppException):
    """Общая ошибка валидации."""
    def __init__(self, message: str = "Validation error"):
        super().__init__(message)

class TaskValidationError(ValidationError):
    """Ошибка валидации задачи."""
    def __init__(self, message: str = "Task validation error"):
        super().__init__(message)

class TeamValidationError(ValidationError):
    """Ошибка валидации команды."""
    def __init__(self, message: str = "Team validation error"):
        super().__init__(message)

class UserValidationError(ValidationError):
    """Ошибка валидации пользователя."""
    def __init__(self, message: str = "User validation error"):
        super().__init__(message)

class InvitationValidationError(ValidationError):
    """Ошибка валидации приглашения."""
    def __init__(self, message: str = "Invitation validation error"):
        super().__init__(message)

# ==== NotFound ====

class NotFoundError(BaseAppException):
    """Ошибка отсутствия ресурса."""
    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)

class TaskNotFound(NotFoundError):
    """Ошибка: задача не найдена."""
    def __init__(self, message: str = "Task not found"):
        super().__init__(message)

class TeamNotFound(NotFoundError):
    """Ошибка: команда не найдена."""
    def __init__(self, message: str = "Team not found"):
        super().__init__(message)

class UserNotFound(NotFoundError):
    """Ошибка: пользователь не найден."""
    def __init__(self, message: str = "User not found"):
        super().__init__(message)

class InvitationNotFound(NotFoundError):
    """Ошибка: приглашение не найдено, уже принято или истекло."""
    def __init__(self, message: str = "Invitation not found or expired"):
        super().__init__(message)

class MembershipNotFound(NotFoundError):
    """Ошибка: пользователь не состоит в команде."""
    def __init__(self, message: str = "Membership not found"):
        super().__init__(message)

# ==== Авторизация ====

class AuthError(BaseAppException):
    """Ошибка аутентификации или авторизации."""
    def __init__(self, message: str = "Authentication or authorization error"):
        super().__init__(message)

class PermissionDeniedError(AuthError):
    """Недостаточно прав (не участник / не admin или owner)."""
    def __init__(self, message: str = "You don't have permission to perform this action"):
        super().__init__(message)

class BannedFromTeamError(PermissionDeniedError):
    """Пользователь заблокирован в команде."""
    def __init__(self, message: str = "You are banned from this team"):
        super().__init__(message)

# ==== Предусловия / конкуренция ====

class CheckInRequiredError(BaseAppException):
    """Нельзя отмечать задачи на дату без check-in за эту дату."""
    code = "check_in_required"

    def __init__(self, message: str = "You must check in before completing tasks"):
        super().__init__(message)

class ConcurrencyConflictError(BaseAppException):
    """Запись была изменена параллельно, повторные попытки исчерпаны."""
    def __init__(self, message: str = "The record was modified concurrently, please retry"):
        super().__init__(message)
