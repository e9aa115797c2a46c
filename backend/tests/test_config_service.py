import unittest

from restopos import create_app
from restopos.extensions import db
from restopos.models import SystemConfig
from restopos.services import config_service
from restopos.validation import ValidationError


class ConfigServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = create_app({
            "SECRET_KEY": "test",
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "SQLALCHEMY_TRACK_MODIFICATIONS": False,
            "TESTING": True,
            "DEFAULT_DAILY_BASE_CENTS": 75000,
            "DEFAULT_REOPEN_PASSWORD": "4321",
            "DEFAULT_BUSINESS_NAME": "La Fonda",
            "BCRYPT_ROUNDS": 4,
        })
        cls.ctx = cls.app.app_context()
        cls.ctx.push()
        db.create_all()

    @classmethod
    def tearDownClass(cls):
        db.session.remove()
        db.drop_all()
        cls.ctx.pop()

    def setUp(self):
        db.session.query(SystemConfig).delete()
        db.session.commit()

    def test_defaults_created_on_first_read(self):
        config = config_service.get_config()

        self.assertEqual(config.business_name, "La Fonda")
        self.assertEqual(config.daily_base_cents, 75000)
        self.assertEqual(config.top_n, 10)
        self.assertEqual(db.session.query(SystemConfig).count(), 1)

        # Second read reuses the row
        self.assertEqual(config_service.get_config().id, config.id)

    def test_password_is_hashed(self):
        config = config_service.get_config()

        self.assertNotEqual(config.reopen_password_hash, "4321")
        self.assertTrue(config.reopen_password_hash.startswith("$2"))
        self.assertNotIn("reopen_password_hash", config.to_dict())

    def test_verify_reopen_password(self):
        self.assertTrue(config_service.verify_reopen_password("4321"))
        self.assertFalse(config_service.verify_reopen_password("1234"))
        self.assertFalse(config_service.verify_reopen_password(""))
        self.assertFalse(config_service.verify_reopen_password(None))

    def test_malformed_hash_never_verifies(self):
        config = config_service.get_config()
        config.reopen_password_hash = "not-a-hash"
        db.session.commit()

        self.assertFalse(config_service.verify_reopen_password("4321"))

    def test_set_reopen_password(self):
        config_service.set_reopen_password("9876", current_password="4321")

        self.assertTrue(config_service.verify_reopen_password("9876"))
        self.assertFalse(config_service.verify_reopen_password("4321"))

    def test_set_reopen_password_requires_current(self):
        with self.assertRaises(ValidationError):
            config_service.set_reopen_password("9876", current_password="0000")
        self.assertTrue(config_service.verify_reopen_password("4321"))

    def test_reopen_password_min_length(self):
        with self.assertRaises(ValidationError):
            config_service.set_reopen_password("12", current_password="4321")

    def test_update_daily_base(self):
        config = config_service.update_config({"daily_base_cents": 30000, "business_name": "  El Fogón "})

        self.assertEqual(config.daily_base_cents, 30000)
        self.assertEqual(config.business_name, "El Fogón")

    def test_update_rejects_negative_base(self):
        with self.assertRaises(ValidationError):
            config_service.update_config({"daily_base_cents": -1})

    def test_update_rejects_password_hash(self):
        with self.assertRaises(ValidationError):
            config_service.update_config({"reopen_password_hash": "x"})

    def test_update_rejects_bad_top_n(self):
        with self.assertRaises(ValidationError):
            config_service.update_config({"top_n": 0})
