"""Erros do acesso ao backend de reservas.

FetchFailure nunca bloqueia a tela: quem chama mostra um aviso e segue com a
última lista de reservas que conseguiu carregar.
"""


class BackendError(Exception):
    """Base para falhas na conversa com o backend."""

    pass


class FetchFailure(BackendError):
    """Backend indisponível, timeout, resposta não-2xx ou corpo que não é JSON."""

    pass


class AuthenticationError(BackendError):
    """Credenciais recusadas ou token que não pode ser decodificado.

    Exige novo login; repetir a chamada não resolve.
    """

    pass
