class PushemError(Exception):
    """Erro base do serviço"""


class CorruptKeyStore(PushemError):
    """O arquivo de chaves VAPID existe mas não pode ser lido. Fatal no boot."""


class SigningFailure(PushemError):
    """Falha ao assinar o token VAPID de uma entrega."""


class StoreUnavailable(PushemError):
    """O banco de inscrições não respondeu (leitura ou escrita)."""


class MessageNotFound(PushemError):
    """Mensagem inexistente ou de outro tópico."""
