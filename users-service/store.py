"""
Stockage en mémoire des utilisateurs.

Le store possède la collection ordonnée des utilisateurs et un compteur
d'identifiants monotone : un id supprimé n'est jamais réattribué.
"""
import threading
from typing import List, Optional

from loguru import logger

from models import User


class UserNotFoundError(LookupError):
    """Aucun utilisateur ne correspond à l'id demandé."""

    def __init__(self, user_id: int):
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class UserStore:
    def __init__(self):
        self._users: List[User] = []
        self._next_id = 1
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._users)

    def _index_of(self, user_id: int) -> int:
        for index, user in enumerate(self._users):
            if user.id == user_id:
                return index
        raise UserNotFoundError(user_id)

    def create(self, name: str, email: str) -> User:
        with self._lock:
            user = User(id=self._next_id, name=name, email=email)
            self._next_id += 1
            self._users.append(user)
        logger.info(f"User created with ID {user.id}")
        return user

    def list(self) -> List[User]:
        with self._lock:
            return list(self._users)

    def get(self, user_id: int) -> User:
        with self._lock:
            return self._users[self._index_of(user_id)]

    def update(self, user_id: int, name: Optional[str] = None, email: Optional[str] = None) -> User:
        """Écrase en place les champs fournis ; l'id ne change jamais."""
        with self._lock:
            user = self._users[self._index_of(user_id)]
            if name is not None:
                user.name = name
            if email is not None:
                user.email = email
        logger.info(f"User {user_id} updated")
        return user

    def delete(self, user_id: int) -> None:
        with self._lock:
            del self._users[self._index_of(user_id)]
        logger.info(f"User {user_id} deleted")
