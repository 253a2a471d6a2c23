from pydantic import BaseModel

DELETE_MESSAGE = "Tem certeza que deseja excluir esta obrigação? A ação não pode ser desfeita."


class ConfirmModal(BaseModel):
    """Pending destructive action waiting for the user's confirmation."""
    target_id: str
    message: str = DELETE_MESSAGE
    confirm_label: str = "Confirmar Exclusão"
    cancel_label: str = "Cancelar"
