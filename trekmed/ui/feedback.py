import flet as ft

def show_snack(page: ft.Page, message: str, is_error: bool = False):
    snack = ft.SnackBar(
        content=ft.Text(message, color=ft.Colors.WHITE),
        bgcolor=ft.Colors.RED_600 if is_error else ft.Colors.GREEN_700,
    )
    page.open(snack)

def badge(text: str, color: str, bgcolor: str = None) -> ft.Container:
    """Etiqueta arredondada (gravidade, status, papel)"""
    return ft.Container(
        content=ft.Text(text, size=11, weight="bold", color=color if bgcolor else ft.Colors.WHITE),
        bgcolor=bgcolor or color,
        padding=ft.padding.symmetric(horizontal=8, vertical=2),
        border_radius=10,
    )
