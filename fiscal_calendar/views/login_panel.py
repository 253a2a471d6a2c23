"""Admin login form."""
from typing import Callable

WRONG_PASSWORD = "Senha incorreta."


class LoginPanel:
    def __init__(self, check_password: Callable[[str], bool]):
        self._check_password = check_password
        self.error = ""

    def submit(self, password: str) -> bool:
        if self._check_password(password):
            self.error = ""
            return True
        self.error = WRONG_PASSWORD
        return False
