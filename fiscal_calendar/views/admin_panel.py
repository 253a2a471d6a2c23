"""
Admin Panel
One form shared by create and edit, plus the confirmed delete flow
"""
import logging
from typing import Optional

from pymongo.errors import PyMongoError

from fiscal_calendar.models.obligation import Obligation, ObligationFields
from fiscal_calendar.services.obligation_store import ObligationStore
from fiscal_calendar.views.confirm_modal import ConfirmModal

logger = logging.getLogger(__name__)

SERVICE_UNAVAILABLE = "Serviço indisponível."


class AdminPanel:
    def __init__(self, store: Optional[ObligationStore]):
        self.store = store
        self.form = ObligationFields()
        self.editing_id: Optional[str] = None
        self.modal: Optional[ConfirmModal] = None
        self.notice = ""

    @property
    def heading(self) -> str:
        return "Editando Obrigação" if self.editing_id else "Adicionar Nova Obrigação"

    @property
    def submit_label(self) -> str:
        return "Atualizar" if self.editing_id else "Adicionar"

    def start_edit(self, obligation: Obligation) -> None:
        self.form = ObligationFields(
            title=obligation.title,
            date=obligation.date,
            sphere=obligation.sphere or "Federal",
        )
        self.editing_id = obligation.id

    def cancel_edit(self) -> None:
        self.form = ObligationFields()
        self.editing_id = None

    async def submit(self, fields: ObligationFields) -> bool:
        """
        Update the obligation being edited, or create a new one.
        Empty title or date does nothing; write failures are only logged.
        """
        self.form = fields
        if self.store is None:
            self.notice = SERVICE_UNAVAILABLE
            return False
        if not fields.is_complete():
            return False
        try:
            if self.editing_id:
                await self.store.update(self.editing_id, fields)
            else:
                await self.store.create(fields)
        except PyMongoError as exc:
            logger.error(f"Error saving obligation: {exc}")
            return False
        self.notice = ""
        self.cancel_edit()
        return True

    def request_delete(self, obligation_id: str) -> None:
        self.modal = ConfirmModal(target_id=obligation_id)

    def cancel_delete(self) -> None:
        self.modal = None

    async def confirm_delete(self) -> bool:
        if self.store is None or self.modal is None:
            return False
        try:
            await self.store.delete(self.modal.target_id)
        except PyMongoError as exc:
            logger.error(f"Error deleting obligation {self.modal.target_id}: {exc}")
            return False
        self.modal = None
        return True
