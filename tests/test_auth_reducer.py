import pytest

from civicportal.auth import INITIAL_STATE, AuthAction, AuthState, auth_reducer
from civicportal.models.enums import AuthActionType, AuthErrorSource, UserRole
from civicportal.models.user import User


def _session(user: User, token: str = "access-1", refresh_token: str = "refresh-1") -> dict:
    return {"user": user, "token": token, "refresh_token": refresh_token}


def _apply(state: AuthState, kind: AuthActionType, payload=None) -> AuthState:
    return auth_reducer(state, AuthAction(type=kind, payload=payload))


def _assert_session_invariant(state: AuthState) -> None:
    if state.is_authenticated:
        assert state.user is not None
        assert state.token is not None


class TestStartActions:
    @pytest.mark.parametrize(
        "kind",
        [AuthActionType.LOGIN_START, AuthActionType.REGISTER_START, AuthActionType.OTP_START],
    )
    def test_start_sets_loading_and_clears_error(self, kind):
        """Should set loading and clear the error without touching the session."""
        state = INITIAL_STATE.model_copy(
            update={"is_loading": False, "error": "old", "error_source": AuthErrorSource.LOGIN},
        )
        result = _apply(state, kind)
        assert result.is_loading is True
        assert result.error is None
        assert result.error_source is None
        assert result.is_authenticated is False

    def test_start_keeps_existing_session(self, user):
        """Should leave user and tokens alone while a request runs."""
        signed_in = _apply(INITIAL_STATE, AuthActionType.LOGIN_SUCCESS, _session(user))
        result = _apply(signed_in, AuthActionType.LOGIN_START)
        assert result.user == user
        assert result.token == "access-1"
        assert result.is_authenticated is True


class TestSuccessActions:
    @pytest.mark.parametrize(
        "kind",
        [
            AuthActionType.LOGIN_SUCCESS,
            AuthActionType.REGISTER_SUCCESS,
            AuthActionType.OTP_SUCCESS,
            AuthActionType.LOAD_USER,
        ],
    )
    def test_success_authenticates(self, kind, user):
        """Every success kind converges on the same authenticated state."""
        result = _apply(INITIAL_STATE, kind, _session(user))
        assert result.is_authenticated is True
        assert result.is_loading is False
        assert result.user == user
        assert result.token == "access-1"
        assert result.refresh_token == "refresh-1"
        assert result.error is None

    def test_success_without_token_is_rejected(self, user):
        """Should refuse a success payload that would break the session invariant."""
        with pytest.raises(ValueError):
            _apply(INITIAL_STATE, AuthActionType.LOGIN_SUCCESS, {"user": user, "token": ""})

    def test_success_requires_dict_payload(self):
        with pytest.raises(TypeError):
            _apply(INITIAL_STATE, AuthActionType.LOGIN_SUCCESS, "token")


class TestFailureActions:
    @pytest.mark.parametrize(
        ("kind", "source"),
        [
            (AuthActionType.LOGIN_FAILURE, AuthErrorSource.LOGIN),
            (AuthActionType.REGISTER_FAILURE, AuthErrorSource.REGISTER),
            (AuthActionType.OTP_SEND_FAILURE, AuthErrorSource.OTP_SEND),
            (AuthActionType.OTP_VERIFY_FAILURE, AuthErrorSource.OTP_VERIFY),
        ],
    )
    def test_failure_clears_session_and_records_source(self, kind, source, user):
        """Should drop the session and remember which flow failed."""
        signed_in = _apply(INITIAL_STATE, AuthActionType.LOGIN_SUCCESS, _session(user))
        result = _apply(signed_in, kind, "Invalid credentials")
        assert result.user is None
        assert result.token is None
        assert result.refresh_token is None
        assert result.is_authenticated is False
        assert result.is_loading is False
        assert result.error == "Invalid credentials"
        assert result.error_source == source

    def test_send_and_verify_failures_are_distinguishable(self):
        send = _apply(INITIAL_STATE, AuthActionType.OTP_SEND_FAILURE, "Failed")
        verify = _apply(INITIAL_STATE, AuthActionType.OTP_VERIFY_FAILURE, "Failed")
        assert send.error == verify.error
        assert send != verify


class TestLogout:
    def test_login_then_logout_is_initial_state_not_loading(self, user):
        """LOGIN_SUCCESS then LOGOUT is the initial state with loading off."""
        signed_in = _apply(INITIAL_STATE, AuthActionType.LOGIN_SUCCESS, _session(user))
        result = _apply(signed_in, AuthActionType.LOGOUT)
        assert result == INITIAL_STATE.model_copy(update={"is_loading": False})

    def test_logout_from_error_state(self):
        failed = _apply(INITIAL_STATE, AuthActionType.LOGIN_FAILURE, "nope")
        result = _apply(failed, AuthActionType.LOGOUT)
        assert result.error is None
        assert result.error_source is None


class TestUpdateUser:
    def test_merges_fields_without_touching_flags(self, user):
        """Should shallow-merge into the user and keep auth flags."""
        signed_in = _apply(INITIAL_STATE, AuthActionType.LOGIN_SUCCESS, _session(user))
        result = _apply(
            signed_in,
            AuthActionType.UPDATE_USER,
            {"firstName": "Pedro", "profile": {"bio": "Volunteer", "address": "Purok 2"}},
        )
        assert result.user.first_name == "Pedro"
        assert result.user.last_name == user.last_name
        assert result.user.profile.bio == "Volunteer"
        assert result.is_authenticated is True
        assert result.token == signed_in.token

    def test_accepts_snake_case_keys(self, user):
        signed_in = _apply(INITIAL_STATE, AuthActionType.LOGIN_SUCCESS, _session(user))
        result = _apply(signed_in, AuthActionType.UPDATE_USER, {"last_name": "Reyes"})
        assert result.user.last_name == "Reyes"

    def test_ignored_without_user(self):
        state = INITIAL_STATE.model_copy(update={"is_loading": False})
        assert _apply(state, AuthActionType.UPDATE_USER, {"firstName": "X"}) is state


class TestSmallActions:
    def test_clear_error_is_idempotent(self):
        """CLEAR_ERROR twice equals CLEAR_ERROR once."""
        failed = _apply(INITIAL_STATE, AuthActionType.LOGIN_FAILURE, "Invalid credentials")
        once = _apply(failed, AuthActionType.CLEAR_ERROR)
        twice = _apply(once, AuthActionType.CLEAR_ERROR)
        assert once == twice
        assert once.error is None
        assert twice is once

    def test_set_loading_only_changes_loading(self, user):
        signed_in = _apply(INITIAL_STATE, AuthActionType.LOGIN_SUCCESS, _session(user))
        result = _apply(signed_in, AuthActionType.SET_LOADING, True)
        assert result.is_loading is True
        assert result.model_copy(update={"is_loading": False}) == signed_in

    def test_reducer_never_mutates_input(self, user):
        before = INITIAL_STATE.model_copy()
        _apply(INITIAL_STATE, AuthActionType.LOGIN_SUCCESS, _session(user))
        assert INITIAL_STATE == before

    def test_role_property(self, admin_user):
        state = _apply(INITIAL_STATE, AuthActionType.LOAD_USER, _session(admin_user))
        assert state.role == UserRole.ADMIN
        assert INITIAL_STATE.role is None


class TestSessionInvariant:
    def test_invariant_holds_across_action_sequences(self, user, admin_user):
        """Authenticated always implies a user and a token, whatever the order."""
        sequence = [
            (AuthActionType.LOGIN_START, None),
            (AuthActionType.LOGIN_FAILURE, "bad"),
            (AuthActionType.OTP_START, None),
            (AuthActionType.OTP_SUCCESS, _session(user)),
            (AuthActionType.UPDATE_USER, {"firstName": "Jose"}),
            (AuthActionType.SET_LOADING, True),
            (AuthActionType.CLEAR_ERROR, None),
            (AuthActionType.LOGOUT, None),
            (AuthActionType.UPDATE_USER, {"firstName": "Ghost"}),
            (AuthActionType.LOAD_USER, _session(admin_user, token="t2")),
            (AuthActionType.REGISTER_FAILURE, "dup"),
            (AuthActionType.REGISTER_SUCCESS, _session(user, refresh_token=None)),
        ]
        state = INITIAL_STATE
        for kind, payload in sequence:
            state = _apply(state, kind, payload)
            _assert_session_invariant(state)
        assert state.is_authenticated is True
        assert state.refresh_token is None
