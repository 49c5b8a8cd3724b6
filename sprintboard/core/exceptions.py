from typing import Optional


class SprintBoardError(Exception):
    def __init__(self, message: str, entity_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.entity_id = entity_id


class ValidationError(SprintBoardError):
    pass


class NotFoundError(SprintBoardError):
    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} not found with ID: {entity_id}", entity_id)
        self.entity = entity


class InvalidStatusTransitionError(SprintBoardError):
    def __init__(self, current: str, new: str) -> None:
        super().__init__(f"Invalid transition from {current} to {new}")
        self.current = current
        self.new = new
