from bearerkit.auth.models.tokens import Credentials, Token
from bearerkit.auth.storage import (
    ACCESS_TOKEN_KEY,
    REFRESH_TOKEN_KEY,
    InMemoryCredentialStore,
    clear_credentials,
    load_credentials,
    save_credentials,
)


class TestInMemoryCredentialStore:
    def test_get_set_delete(self):
        # Arrange
        store = InMemoryCredentialStore()

        # Act & Assert
        assert store.get("name") is None
        store.set("name", "secret")
        assert store.get("name") == "secret"
        store.delete("name")
        assert store.get("name") is None

    def test_delete_missing_key_is_a_no_op(self):
        store = InMemoryCredentialStore()

        store.delete("missing")

        assert "missing" not in store


class TestCredentialPersistence:
    def test_load_from_empty_store_gives_cleared_credentials(self):
        credentials = load_credentials(InMemoryCredentialStore())

        assert credentials == Credentials.cleared()

    def test_load_reads_access_expiry_from_claims(self, jwt_factory):
        # Arrange
        access = jwt_factory(exp=1_700_003_600)
        store = InMemoryCredentialStore(
            {ACCESS_TOKEN_KEY: access, REFRESH_TOKEN_KEY: "refresh-abc"}
        )

        # Act
        credentials = load_credentials(store)

        # Assert
        assert credentials.access == Token(access, 1_700_003_600)
        # Refresh token expiry is not persisted
        assert credentials.refresh == Token("refresh-abc", 0)

    def test_save_then_clear(self):
        # Arrange
        store = InMemoryCredentialStore()
        credentials = Credentials(
            access=Token("access-xyz", 10), refresh=Token("refresh-abc", 20)
        )

        # Act
        save_credentials(store, credentials)

        # Assert
        assert store.get(ACCESS_TOKEN_KEY) == "access-xyz"
        assert store.get(REFRESH_TOKEN_KEY) == "refresh-abc"

        clear_credentials(store)
        assert ACCESS_TOKEN_KEY not in store
        assert REFRESH_TOKEN_KEY not in store
