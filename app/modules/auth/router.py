from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.service import AuthService
from app.modules.auth.dependencies import get_current_user, get_auth_context
from app.modules.auth.models import User
from app.modules.auth.schemas import (
    SignupRequest, TokenResponse, UserOut, UserUpdate, UserWithMemberships,
    PasswordChangeRequest, PasswordChangeResponse, AuthContext
)

auth_router = APIRouter()


@auth_router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def signup(data: SignupRequest, db: Session = Depends(get_db)):
    """
    Crear un workspace (tenant) nuevo junto con su usuario propietario.
    """
    return AuthService(db).signup(data)


@auth_router.post("/login", response_model=TokenResponse)
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    """
    Login de usuario. Retorna token de acceso y lista de tenants.
    """
    return AuthService(db).login(form_data.username, form_data.password)


@auth_router.get("/me", response_model=UserWithMemberships)
def get_current_user_info(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Obtener información del usuario actual con sus membresías.
    """
    return AuthService(db).get_me(current_user)


@auth_router.put("/me", response_model=UserOut)
def update_current_user(
    data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Actualizar nombre, email o teléfono."""
    return AuthService(db).update_details(current_user, data)


@auth_router.put("/me/password", response_model=PasswordChangeResponse)
def change_password(
    data: PasswordChangeRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Cambiar contraseña. Retorna un token nuevo."""
    return AuthService(db).change_password(current_user, data)


@auth_router.get("/context", response_model=AuthContext)
def get_auth_context_info(auth_context: AuthContext = Depends(get_auth_context)):
    """
    Obtener contexto de autenticación resuelto (tenant y rol).
    """
    return auth_context
