"""
Errores de dominio del POS.

Los servicios lanzan estas excepciones; el handler registrado en ``create_app``
las convierte en respuestas ``{"message": ...}`` con su código HTTP.
"""
from typing import Optional

from fastapi import status


class PosError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Error interno"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(PosError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Datos inválidos"


class EmptyRangeError(PosError):
    """Corte de caja solicitado sin ventas en el rango."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "No hay ventas nuevas desde el último corte"


class AuthenticationError(PosError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "No autenticado"


class AuthorizationError(PosError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "No autorizado"


class NotFoundError(PosError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Recurso no encontrado"


class PersistenceError(PosError):
    default_message = "Error al guardar en la base de datos"
