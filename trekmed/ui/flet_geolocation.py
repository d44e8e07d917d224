import flet as ft

from trekmed.services.geolocation import GeolocationProvider, Position

class FletGeolocationProvider(GeolocationProvider):
    """Posição do dispositivo via controle Geolocator do Flet."""

    def __init__(self, page: ft.Page):
        self.page_ref = page
        self.geolocator = ft.Geolocator(
            location_settings=ft.GeolocatorSettings(accuracy=ft.GeolocatorPositionAccuracy.BEST),
        )
        page.overlay.append(self.geolocator)
        page.update()

    def get_position(self, timeout: float) -> Position:
        status = self.geolocator.request_permission(wait_timeout=timeout)
        if status in (ft.GeolocatorPermissionStatus.DENIED, ft.GeolocatorPermissionStatus.DENIED_FOREVER):
            raise PermissionError("permissão de localização negada")
        if not self.geolocator.is_location_service_enabled(wait_timeout=timeout):
            raise OSError("serviço de localização desligado")

        try:
            pos = self.geolocator.get_current_position(wait_timeout=timeout)
        except TimeoutError:
            raise
        except Exception as e:
            raise OSError(str(e)) from e

        if pos is None:
            raise OSError("posição vazia")
        return Position(
            latitude=pos.latitude,
            longitude=pos.longitude,
            altitude=getattr(pos, "altitude", None),
            accuracy=getattr(pos, "accuracy", None) or 0.0,
        )

    def dispose(self):
        if self.geolocator in self.page_ref.overlay:
            self.page_ref.overlay.remove(self.geolocator)
