"""Domain errors raised by services and translated to HTTP by the routes."""


class DatabaseUnavailableError(RuntimeError):
    """The document store could not be reached or is not configured."""


class InvalidIdentifierError(ValueError):
    """A path identifier is not a well-formed ObjectId."""

    def __init__(self, value: str):
        super().__init__(f"'{value}' is not a valid identifier")
        self.value = value


class NotFoundError(LookupError):
    def __init__(self, entity: str, identifier: str):
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.identifier = identifier


class CourseInUseError(Exception):
    """Raised when deleting a course that students still reference."""

    def __init__(self, course_id: str, enrolled: int):
        super().__init__("Cannot delete course with enrolled students")
        self.course_id = course_id
        self.enrolled = enrolled
