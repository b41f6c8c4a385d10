"""
Custom exceptions for the Evergreeners service layer.
The metrics core never raises these; they come from the services that wrap it.
"""


class EvergreenersException(Exception):
    """Base exception for the application"""
    pass


class UserNotFoundException(EvergreenersException):
    """Raised when a user is not found"""
    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User with ID {user_id} not found")


class GoalNotFoundException(EvergreenersException):
    """Raised when a goal is not found"""
    def __init__(self, goal_id: int):
        self.goal_id = goal_id
        super().__init__(f"Goal with ID {goal_id} not found")


class QuestNotFoundException(EvergreenersException):
    """Raised when a quest is not found"""
    def __init__(self, quest_id: int):
        self.quest_id = quest_id
        super().__init__(f"Quest with ID {quest_id} not found")


class QuestTakenException(EvergreenersException):
    """Raised when another user already holds the quest"""
    def __init__(self, quest_id: int):
        self.quest_id = quest_id
        super().__init__(f"Quest {quest_id} is already taken")


class OwnQuestException(EvergreenersException):
    """Raised when a creator tries to accept their own quest"""
    def __init__(self, quest_id: int):
        self.quest_id = quest_id
        super().__init__(f"You cannot accept your own quest ({quest_id})")


class QuestAlreadyCompletedException(EvergreenersException):
    """Raised when a user re-accepts a quest they already completed"""
    def __init__(self, quest_id: int, user_id: str):
        self.quest_id = quest_id
        self.user_id = user_id
        super().__init__(f"User {user_id} already completed quest {quest_id}")


class QuestNotAcceptedException(EvergreenersException):
    """Raised when a user checks or drops a quest they do not hold"""
    def __init__(self, quest_id: int, user_id: str):
        self.quest_id = quest_id
        self.user_id = user_id
        super().__init__(f"User {user_id} has not accepted quest {quest_id}")


class DatabaseException(EvergreenersException):
    """Raised when database operations fail"""
    def __init__(self, operation: str, details: str):
        self.operation = operation
        self.details = details
        super().__init__(f"Database {operation} failed: {details}")


class ValidationException(EvergreenersException):
    """Raised when data validation fails"""
    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error for {field}: {message}")
