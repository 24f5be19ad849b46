"""Unit tests for app.models.user: claims, roles, computed fields, serialization, rules."""

import unittest

from app.core.exceptions import PreconditionError, Unauthorized
from app.core.security import verify_password
from app.models import User
from app.models.user import user_rules
from tests.helpers import add_role, add_user, make_session


class TestClaims(unittest.TestCase):
    """identity_claim returns the id; custom_claims is empty."""

    def test_identity_claim_is_id(self) -> None:
        user = User(id="0b7c5a52-3f3c-4f43-9d52-6c1d0c3f4a10")
        self.assertEqual(user.identity_claim(), "0b7c5a52-3f3c-4f43-9d52-6c1d0c3f4a10")

    def test_custom_claims_empty(self) -> None:
        self.assertEqual(User().custom_claims(), {})

    def test_ensure_identifier_assigns_uuid_once(self) -> None:
        user = User()
        first = user.ensure_identifier()
        self.assertEqual(len(first), 36)
        self.assertEqual(user.ensure_identifier(), first)


class TestFullname(unittest.TestCase):
    """fullname capitalises every word of firstname + lastname."""

    def test_john_doe(self) -> None:
        self.assertEqual(User(firstname="john", lastname="doe").fullname(), "John Doe")

    def test_only_first_letter_changes(self) -> None:
        user = User(firstname="mary ann", lastname="mcDonald")
        self.assertEqual(user.fullname(), "Mary Ann McDonald")

    def test_missing_lastname(self) -> None:
        self.assertEqual(User(firstname="john").fullname(), "John")

    def test_any_whitespace_starts_a_word(self) -> None:
        user = User(firstname="mary\tann", lastname="van\ndoe")
        self.assertEqual(user.fullname(), "Mary\tAnn Van\nDoe")

    def test_missing_firstname_raises(self) -> None:
        with self.assertRaises(PreconditionError):
            User(lastname="doe").fullname()


class TestAvatarView(unittest.TestCase):
    """avatar_view builds original/thumbnail URLs from base url and filename."""

    def test_none_without_avatar(self) -> None:
        self.assertIsNone(User(id="u1").avatar_view("http://x/"))

    def test_urls(self) -> None:
        user = User(id="u1", avatar="abc.png")
        view = user.avatar_view("http://x/")
        self.assertEqual(view["original_image"], "http://x/api/user/u1/avatar/original@abc.png")
        self.assertEqual(view["thumbnail"], "http://x/api/user/u1/avatar/thumbnail@abc.png")
        self.assertEqual(view["filename"], "abc.png")

    def test_base_url_without_trailing_slash(self) -> None:
        view = User(id="u1", avatar="abc.png").avatar_view("https://example.com")
        self.assertEqual(view["thumbnail"], "https://example.com/api/user/u1/avatar/thumbnail@abc.png")


class TestAuditDescription(unittest.TestCase):
    def test_description(self) -> None:
        self.assertEqual(User().audit_description("created"), "This user has been created")

    def test_audit_attributes_exclude_password(self) -> None:
        user = User(username="jdoe", email="j@example.com", firstname="john", password_hash="x")
        attributes = user.audit_attributes()
        self.assertEqual(set(attributes), {"username", "email", "firstname", "lastname"})


class TestFill(unittest.TestCase):
    """fill assigns FILLABLE attributes only and hashes the password."""

    def test_ignores_non_fillable(self) -> None:
        user = User()
        assigned = user.fill(
            {"username": "jdoe", "remember_token": "tok", "avatar": "a.png", "id": "forged"}
        )
        self.assertEqual(assigned, ["username"])
        self.assertIsNone(user.remember_token)
        self.assertIsNone(user.avatar)
        self.assertIsNone(user.id)

    def test_password_is_hashed(self) -> None:
        user = User()
        user.fill({"password": "secret"})
        self.assertNotEqual(user.password_hash, "secret")
        self.assertTrue(verify_password("secret", user.password_hash))


class TestValidationRules(unittest.TestCase):
    """Rule sets per flow."""

    def test_create_rules(self) -> None:
        rules = User().validation_rules("create")
        self.assertEqual(rules["username"], ["bail", "required", "max:190", "unique:users,username"])
        self.assertEqual(rules["roles"], ["bail", "required", "array"])
        self.assertEqual(rules["roles.*"], ["exists:roles,id"])
        self.assertEqual(len(rules["avatar"]), 2)

    def test_update_rules_skip_roles_and_ignore_self(self) -> None:
        rules = User(id="u1").validation_rules("update")
        self.assertNotIn("roles", rules)
        self.assertNotIn("roles.*", rules)
        self.assertEqual(rules["email"][0], "sometimes")
        self.assertIn("unique:users,email,u1", rules["email"])

    def test_roles_rules(self) -> None:
        self.assertEqual(set(user_rules("roles")), {"roles", "roles.*"})


class TestIndexes(unittest.TestCase):
    def test_username_and_email_only_have_partial_unique_indexes(self) -> None:
        for column, expected in (("username", "uq_users_username_active"), ("email", "uq_users_email_active")):
            indexes = [ix for ix in User.__table__.indexes if column in ix.columns.keys()]
            self.assertEqual([ix.name for ix in indexes], [expected])
            self.assertTrue(indexes[0].unique)


class TestRoles(unittest.TestCase):
    """has_role / has_any_role / check_roles / authorize_roles against a real relation."""

    def setUp(self) -> None:
        self.session = make_session()
        self.admin = add_role(self.session, "admin")
        self.editor = add_role(self.session, "editor")
        self.user = add_user(self.session, "jdoe", roles=[self.admin])
        self.plain = add_user(self.session, "plain")

    def tearDown(self) -> None:
        self.session.close()

    def test_has_role_exact_name(self) -> None:
        self.assertTrue(self.user.has_role("admin"))
        self.assertFalse(self.user.has_role("editor"))
        self.assertFalse(self.user.has_role("Admin"))

    def test_has_role_sees_later_changes(self) -> None:
        self.assertFalse(self.user.has_role("editor"))
        self.user.roles.append(self.editor)
        self.session.commit()
        self.assertTrue(self.user.has_role("editor"))

    def test_has_any_role(self) -> None:
        self.assertTrue(self.user.has_any_role({"admin", "editor"}))
        self.assertFalse(self.user.has_any_role({"editor", "viewer"}))
        self.assertFalse(self.user.has_any_role(set()))

    def test_has_any_role_without_roles(self) -> None:
        self.assertFalse(self.plain.has_any_role({"admin", "editor"}))

    def test_check_roles_never_raises(self) -> None:
        check = self.plain.check_roles("admin")
        self.assertFalse(check.allowed)
        self.assertIsInstance(check.error, Unauthorized)
        self.assertTrue(self.user.check_roles("admin").allowed)
        self.assertIsNone(self.user.check_roles("admin").error)

    def test_authorize_roles_allowed(self) -> None:
        self.assertTrue(self.user.authorize_roles("admin"))
        self.assertTrue(self.user.authorize_roles(["editor", "admin"]))

    def test_authorize_roles_denied_names_role(self) -> None:
        with self.assertRaises(Unauthorized) as ctx:
            self.plain.authorize_roles("admin")
        self.assertIn("admin", ctx.exception.message)
        self.assertEqual(
            ctx.exception.message,
            "This action is unauthorized. Only admin can access this action.",
        )

    def test_authorize_roles_denied_lists_roles(self) -> None:
        with self.assertRaises(Unauthorized) as ctx:
            self.plain.authorize_roles(["admin", "editor"])
        self.assertIn("Only admin,editor can", ctx.exception.message)


class TestToDict(unittest.TestCase):
    """Serialized form omits hidden attributes and adds computed ones."""

    def setUp(self) -> None:
        self.session = make_session()
        role = add_role(self.session, "admin")
        self.user = add_user(
            self.session, "jdoe", roles=[role], remember_token="remember-me", avatar="abc.png"
        )

    def tearDown(self) -> None:
        self.session.close()

    def test_hidden_fields_absent(self) -> None:
        data = self.user.to_dict("http://x/")
        for key in ("password", "password_hash", "remember_token", "pivot"):
            self.assertNotIn(key, data)
        self.assertNotIn(self.user.password_hash, data.values())
        self.assertNotIn("remember-me", data.values())

    def test_computed_fields_present(self) -> None:
        data = self.user.to_dict("http://x/")
        self.assertEqual(data["fullname"], "John Doe")
        self.assertEqual(data["avatar"]["filename"], "abc.png")
        self.assertEqual(data["id"], self.user.id)
        self.assertIsNone(data["deleted_at"])


if __name__ == "__main__":
    unittest.main()
