"""
Domain Exceptions

Every expected failure of a domain operation is a DomainError carrying a
stable machine-readable code and the HTTP status the API answers with.
Messages are user-facing and never include internal detail.
"""


class DomainError(Exception):
    code = "ERROR"
    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None, **context):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}
