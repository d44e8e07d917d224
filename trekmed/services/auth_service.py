import logging
from typing import Callable, List, Optional

from trekmed.models.usuario import Usuario
from trekmed.data.kv_store import KVStore
from trekmed.services.api_client import ApiClient, BackendError

logger = logging.getLogger("AuthService")

SESSION_TOKEN_KEY = "session_token"

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"

AuthListener = Callable[[str, Optional[Usuario]], None]

class AuthService:
    def __init__(self, api: ApiClient, kv_store: Optional[KVStore] = None):
        self.api = api
        self.kv_store = kv_store
        self._current_user: Optional[Usuario] = None
        self._listeners: List[AuthListener] = []

    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        """Registra um ouvinte; devolve a função que cancela o registro"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _notify(self, event: str):
        for listener in list(self._listeners):
            listener(event, self._current_user)

    def sign_in(self, email: str, password: str) -> Optional[str]:
        """Autentica no servidor. Retorna a mensagem de erro ou None em caso de sucesso."""
        try:
            result = self.api.login(email.strip(), password)
        except BackendError as e:
            return e.message

        self.api.set_token(result["access_token"])
        self._current_user = Usuario.model_validate(result["usuario"])
        if self.kv_store:
            self.kv_store.set(SESSION_TOKEN_KEY, result["access_token"])
        self._notify(SIGNED_IN)
        return None

    def restore_session(self) -> bool:
        """Reaproveita o token salvo da última execução, se ainda válido"""
        token = self.kv_store.get(SESSION_TOKEN_KEY) if self.kv_store else None
        if not token:
            return False

        self.api.set_token(token)
        try:
            self._current_user = Usuario.model_validate(self.api.me())
        except BackendError as e:
            logger.info("Sessão salva descartada: %s", e.message)
            self.api.set_token(None)
            self.kv_store.delete(SESSION_TOKEN_KEY)
            return False

        self._notify(SIGNED_IN)
        return True

    def sign_out(self):
        try:
            self.api.logout()
        except BackendError as e:
            # Sessão local é encerrada mesmo sem resposta do servidor
            logger.warning("Logout remoto falhou: %s", e.message)
        self.api.set_token(None)
        self._current_user = None
        if self.kv_store:
            self.kv_store.delete(SESSION_TOKEN_KEY)
        self._notify(SIGNED_OUT)

    def get_current_user(self) -> Optional[Usuario]:
        return self._current_user

    @property
    def is_super_admin(self) -> bool:
        return bool(self._current_user and self._current_user.is_super_admin)
