class PermissionDenied(Exception):
    """Ação bloqueada pelo papel/permissões do usuário."""

class FormError(ValueError):
    """Entrada de formulário inválida (mensagem pronta para a UI)."""

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.field = field
