from dataclasses import dataclass
from typing import Optional

DEFAULT_TIMEOUT_SECONDS = 15

PERMISSION_DENIED = "PERMISSION_DENIED"
POSITION_UNAVAILABLE = "POSITION_UNAVAILABLE"
TIMEOUT = "TIMEOUT"
UNSUPPORTED = "UNSUPPORTED"
UNKNOWN = "UNKNOWN"

MESSAGES = {
    PERMISSION_DENIED: "Permissão de localização negada. Ative nas configurações do celular.",
    POSITION_UNAVAILABLE: "Localização indisponível. Verifique o GPS.",
    TIMEOUT: "Tempo esgotado ao buscar localização.",
    UNSUPPORTED: "Geolocalização não suportada neste dispositivo",
    UNKNOWN: "Erro ao obter localização.",
}

@dataclass
class Position:
    latitude: float
    longitude: float
    altitude: Optional[float]
    accuracy: float

    def describe(self) -> str:
        return f"GPS: {self.latitude:.6f}, {self.longitude:.6f} (±{self.accuracy:.0f}m)"

class GeolocationError(Exception):
    def __init__(self, code: str):
        super().__init__(MESSAGES.get(code, MESSAGES[UNKNOWN]))
        self.code = code

class GeolocationProvider:
    """Fonte de posição do dispositivo (implementada pela camada de UI)."""

    def get_position(self, timeout: float) -> Position:
        raise NotImplementedError

def acquire_position(provider: Optional[GeolocationProvider], timeout: float = DEFAULT_TIMEOUT_SECONDS) -> Position:
    """
    Leitura única de GPS, sem novas tentativas.
    Erros do provedor são traduzidos para GeolocationError.
    """
    if provider is None:
        raise GeolocationError(UNSUPPORTED)
    try:
        return provider.get_position(timeout)
    except GeolocationError:
        raise
    except TimeoutError as e:
        raise GeolocationError(TIMEOUT) from e
    except PermissionError as e:
        raise GeolocationError(PERMISSION_DENIED) from e
    except OSError as e:
        raise GeolocationError(POSITION_UNAVAILABLE) from e
