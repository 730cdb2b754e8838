from pydantic import BaseModel

class UserCreate(BaseModel):
    # Aucune validation de format : toute chaîne est acceptée
    name: str
    email: str

class UserUpdate(BaseModel):
    # Champ omis : valeur conservée ; null explicite : refusé (422)
    name: str = None
    email: str = None

class UserResponse(BaseModel):
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True  # Pour compatibilité Pydantic v2
