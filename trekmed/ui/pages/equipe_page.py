import flet as ft

from trekmed.services.equipe_service import EquipeService
from trekmed.ui.context import AppContext
from trekmed.ui.widgets.equipe_manager import EquipeManager

class EquipePage(ft.Column):
    def __init__(self, page: ft.Page, ctx: AppContext):
        super().__init__()
        self.expand = True
        self.controls = [EquipeManager(page, EquipeService(ctx.api, ctx.eventos))]
