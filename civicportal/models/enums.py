"""
Shared Enumerations for Civic Portal Models.

All string enumerations for type-safe field constraints.
StrEnum values compare equal to their string equivalents,
so code like ``if role == 'admin'`` continues to work.
"""

from __future__ import annotations
from enum import StrEnum


class UserRole(StrEnum):
    """Valid user roles in the portal."""

    USER = "user"
    ADMIN = "admin"

    @classmethod
    def _missing_(cls, value: object) -> "UserRole | None":
        # The API labels ordinary accounts "citizen".
        if isinstance(value, str) and value.lower() in ("citizen", "user"):
            return cls.USER
        if isinstance(value, str) and value.lower() == "admin":
            return cls.ADMIN
        return None


class Barangay(StrEnum):
    """The barangays a constituent can register under."""

    AGNAS = "Agnas"
    BACOLOD = "Bacolod"
    BANGKILINGAN = "Bangkilingan"
    BANTAYAN = "Bantayan"
    BARANGHAWON = "Baranghawon"
    BASAGAN = "Basagan"
    BASUD = "Basud"
    BOGNABONG = "Bognabong"
    BOMBON = "Bombon"
    BONOT = "Bonot"
    SAN_ISIDRO = "San Isidro"
    BUANG = "Buang"
    BUHIAN = "Buhian"
    CABAGNAN = "Cabagnan"
    COBO = "Cobo"
    COMON = "Comon"
    CORMIDAL = "Cormidal"
    DIVINO_ROSTRO = "Divino Rostro"
    FATIMA = "Fatima"
    GUINOBAT = "Guinobat"
    HACIENDA = "Hacienda"
    MAGAPO = "Magapo"
    MARIROC = "Mariroc"
    MATAGBAC = "Matagbac"
    ORAS = "Oras"
    OSON = "Oson"
    PANAL = "Panal"
    PAWA = "Pawa"
    PINAGBOBONG = "Pinagbobong"
    QUINALE_CABASAN = "Quinale Cabasan"
    QUINASTILLOJAN = "Quinastillojan"
    RAWIS = "Rawis"
    SAGURONG = "Sagurong"
    SALVACION = "Salvacion"
    SAN_ANTONIO = "San Antonio"
    SAN_CARLOS = "San Carlos"
    SAN_JUAN = "San Juan"
    SAN_LORENZO = "San Lorenzo"
    SAN_RAMON = "San Ramon"
    SAN_ROQUE = "San Roque"
    SAN_VICENTE = "San Vicente"
    SANTO_CRISTO = "Santo Cristo"
    SUA_IGOT = "Sua-igot"
    TABIGUIAN = "Tabiguian"
    TAGAS = "Tagas"
    TAYHI = "Tayhi"
    VISITA = "Visita"

    @classmethod
    def _missing_(cls, value: object) -> "Barangay | None":
        # Stored lowercase server-side.
        if isinstance(value, str):
            wanted = value.strip().lower()
            for member in cls:
                if member.value.lower() == wanted:
                    return member
        return None


class AuthActionType(StrEnum):
    """Action kinds accepted by the auth reducer.

    Send and verify failures of the OTP flow are distinct kinds so the
    UI can tell "your number was rejected" from "your code was wrong".
    """

    LOGIN_START = "LOGIN_START"
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILURE = "LOGIN_FAILURE"
    REGISTER_START = "REGISTER_START"
    REGISTER_SUCCESS = "REGISTER_SUCCESS"
    REGISTER_FAILURE = "REGISTER_FAILURE"
    OTP_START = "OTP_START"
    OTP_SUCCESS = "OTP_SUCCESS"
    OTP_SEND_FAILURE = "OTP_SEND_FAILURE"
    OTP_VERIFY_FAILURE = "OTP_VERIFY_FAILURE"
    LOGOUT = "LOGOUT"
    LOAD_USER = "LOAD_USER"
    UPDATE_USER = "UPDATE_USER"
    CLEAR_ERROR = "CLEAR_ERROR"
    SET_LOADING = "SET_LOADING"


class AuthErrorSource(StrEnum):
    """Which flow produced the global auth error."""

    LOGIN = "LOGIN"
    REGISTER = "REGISTER"
    OTP_SEND = "OTP_SEND"
    OTP_VERIFY = "OTP_VERIFY"


class GuardOutcome(StrEnum):
    """Result of a single route-guard evaluation."""

    LOADING = "LOADING"
    ALLOW = "ALLOW"
    REDIRECT_LOGIN = "REDIRECT_LOGIN"
    REDIRECT_UNAUTHORIZED = "REDIRECT_UNAUTHORIZED"
    REDIRECT_AWAY = "REDIRECT_AWAY"


class OTPPhase(StrEnum):
    """States of the OTP verification popup."""

    IDLE = "IDLE"
    AWAITING_CODE = "AWAITING_CODE"
    VERIFYING = "VERIFYING"
    AUTHENTICATED = "AUTHENTICATED"


class BootstrapOutcome(StrEnum):
    """How the startup session restoration ended."""

    ANONYMOUS = "ANONYMOUS"
    RESTORED = "RESTORED"
    REFRESHED = "REFRESHED"
