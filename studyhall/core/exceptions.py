"""
Service-layer errors.

Services raise these; each blueprint maps them to an HTTP status in one
place, so a service never builds a response itself.

    raise NotFoundError(resource="AdmissionRequest", resource_id=42)
    raise ValidationError("Name, phone and branch are required",
                          details={"name": "required"})
    raise ConflictError("Student", "phone", "9876543210")
"""


class NotFoundError(Exception):
    """No such row in the acting library, or not in the state the operation needs.

    A row owned by another library is reported exactly like a missing one,
    as is a request that has already been accepted or rejected.

    Args:
        resource: Entity name, e.g. "AdmissionRequest".
        resource_id: Id that was looked up. Logged, never returned to clients.
        library_id: Scope that was applied. Logged only.
        message: Replaces the generated "<resource> id=N not found".
    """

    def __init__(
        self,
        resource: str,
        resource_id: int | str | None = None,
        library_id: int | None = None,
        message: str | None = None,
    ) -> None:
        self.resource = resource
        self.resource_id = resource_id
        self.library_id = library_id
        if message is None:
            suffix = f" id={resource_id}" if resource_id is not None else ""
            message = f"{resource}{suffix} not found"
        super().__init__(message)


class ValidationError(Exception):
    """Client input the service cannot accept.

    ``details`` maps field name to a short reason ("required", "unknown", ...).
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """The write would duplicate a business key or take a resource already in use.

    ``field`` is echoed to clients as ``details.field``.
    """

    def __init__(
        self,
        resource: str,
        field: str,
        value: str | None = None,
        message: str | None = None,
    ) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(message or f"{resource} with {field}={value!r} already exists")


class ForbiddenError(Exception):
    """The authenticated principal may not act for this library."""
