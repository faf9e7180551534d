"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    title = "Erro"

    def __init__(self, message: str, title: str | None = None):
        super().__init__(message)
        self.message = message
        if title is not None:
            self.title = title


class ValidationError(DomainException):
    """Input rejected before any persistence attempt"""

    title = "Dados inválidos"


class ParseError(DomainException):
    """Bank statement file is malformed"""

    title = "Arquivo inválido"


class PersistenceError(DomainException):
    """Store rejected a read or write"""

    title = "Erro ao salvar"


class NotFoundError(DomainException):
    """Target row or journal entry does not exist"""

    title = "Não encontrado"
