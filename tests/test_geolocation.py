import pytest

from trekmed.services.geolocation import (
    PERMISSION_DENIED, POSITION_UNAVAILABLE, TIMEOUT, UNSUPPORTED,
    GeolocationError, GeolocationProvider, Position, acquire_position,
)

class StubProvider(GeolocationProvider):
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.timeouts = []

    def get_position(self, timeout):
        self.timeouts.append(timeout)
        if self.error:
            raise self.error
        return self.result

def test_returns_position():
    posicao = Position(latitude=-20.31, longitude=-43.86, altitude=None, accuracy=12.4)
    provider = StubProvider(result=posicao)
    assert acquire_position(provider, timeout=5) is posicao
    assert provider.timeouts == [5]
    assert posicao.describe() == "GPS: -20.310000, -43.860000 (±12m)"

def test_no_provider_is_unsupported():
    with pytest.raises(GeolocationError) as exc:
        acquire_position(None)
    assert exc.value.code == UNSUPPORTED
    assert str(exc.value) == "Geolocalização não suportada neste dispositivo"

@pytest.mark.parametrize("error, code", [
    (TimeoutError(), TIMEOUT),
    (PermissionError(), PERMISSION_DENIED),
    (OSError("gps off"), POSITION_UNAVAILABLE),
    (GeolocationError(TIMEOUT), TIMEOUT),
])
def test_provider_errors_are_translated(error, code):
    with pytest.raises(GeolocationError) as exc:
        acquire_position(StubProvider(error=error))
    assert exc.value.code == code
