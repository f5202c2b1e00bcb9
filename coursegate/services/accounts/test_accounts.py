"""Tests for :mod:`coursegate.services.accounts`."""

from unittest import TestCase, mock
import shutil
import tempfile

from coursegate import domain
from coursegate.factory import create_web_app
from coursegate.services import accounts
from coursegate.services.accounts.models import DBAccount, DBCourseGrant
from coursegate.services.exceptions import DuplicateAccount, \
    AuthenticationFailed, NoSuchAccount


def _registration(username='alice', email='alice@coursegate.org',
                  password='pw123456', **extra):
    return domain.Registration(
        username=username,
        email=email,
        password=password,
        name=domain.UserFullName('Alice', 'Liddell'),
        **extra
    )


class AccountsTestCase(TestCase):
    """Creates a fresh datastore for each test."""

    def setUp(self):
        """Set up a temporary DB."""
        self.workdir = tempfile.mkdtemp()
        self.app = create_web_app({
            'SQLALCHEMY_DATABASE_URI': f'sqlite:///{self.workdir}/test.db',
            'CREATE_DB': True,
            'MAIL_BACKEND': 'memory',
            'BCRYPT_ROUNDS': 10,
            'LOG_JSON': False
        })

    def tearDown(self):
        """Tear down temporary DB."""
        with self.app.app_context():
            accounts.drop_all()
        shutil.rmtree(self.workdir)


class TestCreateAccount(AccountsTestCase):
    """Tests for :func:`accounts.create_account`."""

    def test_create_new_account(self):
        """A new account is pending approval, with a hashed password."""
        with self.app.app_context():
            account = accounts.create_account(_registration(), rounds=10)
            loaded = accounts.get_account(account.account_id)
            db_account = accounts.util.current_session() \
                .get(DBAccount, account.account_id)
            password_hash = db_account.password_hash

        self.assertIsNotNone(account.account_id)
        self.assertEqual(loaded, account)
        self.assertEqual(account.role, domain.STUDENT)
        self.assertFalse(account.is_approved)
        self.assertFalse(account.is_email_verified)
        self.assertEqual(account.approved_course_ids, frozenset())
        self.assertNotEqual(password_hash, 'pw123456')
        self.assertTrue(password_hash.startswith('$2b$10$'))

    def test_email_is_normalized(self):
        """E-mail addresses are stored in lower case."""
        with self.app.app_context():
            account = accounts.create_account(
                _registration(email='Alice@CourseGate.org'), rounds=10
            )
        self.assertEqual(account.email, 'alice@coursegate.org')

    def test_duplicate_email(self):
        """A second account with the same e-mail is not created."""
        with self.app.app_context():
            accounts.create_account(_registration(), rounds=10)
            with self.assertRaises(DuplicateAccount):
                accounts.create_account(
                    _registration(username='alice2',
                                  email='ALICE@coursegate.org'),
                    rounds=10
                )
            count = accounts.util.current_session().query(DBAccount).count()
        self.assertEqual(count, 1)

    def test_duplicate_username(self):
        """A second account with the same username is not created."""
        with self.app.app_context():
            accounts.create_account(_registration(), rounds=10)
            with self.assertRaises(DuplicateAccount):
                accounts.create_account(
                    _registration(email='other@coursegate.org'), rounds=10
                )
            count = accounts.util.current_session().query(DBAccount).count()
        self.assertEqual(count, 1)

    @mock.patch(f'{accounts.__name__}._check_unique')
    def test_duplicate_caught_by_constraint(self, mock_check_unique):
        """A registration that loses a race is rejected by the database."""
        with self.app.app_context():
            accounts.create_account(_registration(), rounds=10)
            with self.assertRaises(DuplicateAccount):
                accounts.create_account(_registration(), rounds=10)
            count = accounts.util.current_session().query(DBAccount).count()
        self.assertEqual(count, 1)

    def test_get_nonexistant_account(self):
        """Loading an account that does not exist raises NoSuchAccount."""
        with self.app.app_context():
            with self.assertRaises(NoSuchAccount):
                accounts.get_account(42)


class TestCheckCredentials(AccountsTestCase):
    """Tests for :func:`accounts.check_credentials`."""

    def setUp(self):
        """Create an account to log in with."""
        super().setUp()
        with self.app.app_context():
            self.account = accounts.create_account(_registration(), rounds=10)

    def test_username_and_password(self):
        """The account is returned for a correct username and password."""
        with self.app.app_context():
            account = accounts.check_credentials('alice', 'pw123456')
        self.assertEqual(account.account_id, self.account.account_id)

    def test_email_and_password(self):
        """The e-mail address can be used in place of the username."""
        with self.app.app_context():
            account = accounts.check_credentials('Alice@coursegate.org',
                                                 'pw123456')
        self.assertEqual(account.account_id, self.account.account_id)

    def test_wrong_password(self):
        """An incorrect password fails."""
        with self.app.app_context():
            with self.assertRaises(AuthenticationFailed):
                accounts.check_credentials('alice', 'pw1234567')

    def test_unknown_user(self):
        """An unknown username fails in the same way."""
        with self.app.app_context():
            with self.assertRaises(AuthenticationFailed):
                accounts.check_credentials('bob', 'pw123456')

    def test_lookup(self):
        """Accounts can be found by username or by e-mail."""
        with self.app.app_context():
            by_username = accounts.find_by_username_or_email('alice')
            by_email = accounts.find_by_username_or_email(
                'alice@coursegate.org'
            )
            self.assertEqual(accounts.find_by_email('alice@coursegate.org'),
                             self.account)
            self.assertIsNone(accounts.find_by_email('alice'))
            self.assertIsNone(accounts.find_by_username_or_email('bob'))
            self.assertTrue(
                accounts.has_account_for_email('ALICE@coursegate.org')
            )
        self.assertEqual(by_username, self.account)
        self.assertEqual(by_email, self.account)

    def test_unapproved_account_can_authenticate(self):
        """Approval is not required to authenticate."""
        self.assertFalse(self.account.is_approved)
        with self.app.app_context():
            account = accounts.check_credentials('alice', 'pw123456')
        self.assertFalse(account.is_approved)


class TestApproval(AccountsTestCase):
    """Tests for the approval functions."""

    def setUp(self):
        """Create a student and an admin."""
        super().setUp()
        with self.app.app_context():
            self.student = accounts.create_account(_registration(), rounds=10)
            self.admin = accounts.create_account(
                _registration(username='root', email='root@coursegate.org',
                              role=domain.ADMIN),
                rounds=10
            )

    def test_approve(self):
        """Approval records who approved, and when."""
        with self.app.app_context():
            account = accounts.set_approval(self.student.account_id, True,
                                            ['course1', 'course2'],
                                            approved_by=self.admin.account_id)
        self.assertTrue(account.is_approved)
        self.assertEqual(account.approved_course_ids,
                         {'course1', 'course2'})
        self.assertEqual(account.approved_by, self.admin.account_id)
        self.assertIsNotNone(account.approved_at)

    def test_reapprove_replaces_grants(self):
        """Approving again replaces the prior course grants."""
        with self.app.app_context():
            accounts.set_approval(self.student.account_id, True,
                                  ['A', 'B'])
            accounts.set_approval(self.student.account_id, True, ['C'])
            account = accounts.get_account(self.student.account_id)
            grants = accounts.util.current_session() \
                .query(DBCourseGrant).count()
        self.assertEqual(account.approved_course_ids, {'C'})
        self.assertEqual(grants, 1)

    def test_reject(self):
        """Rejecting clears grants but keeps the account."""
        with self.app.app_context():
            accounts.set_approval(self.student.account_id, True, ['A'])
            account = accounts.set_approval(self.student.account_id, False)
            self.assertEqual(accounts.get_account(self.student.account_id),
                             account)
        self.assertFalse(account.is_approved)
        self.assertEqual(account.approved_course_ids, frozenset())
        self.assertIsNone(account.approved_at)

    def test_revoke_courses(self):
        """Specific grants can be removed."""
        with self.app.app_context():
            accounts.set_approval(self.student.account_id, True,
                                  ['A', 'B', 'C'])
            account = accounts.revoke_courses(self.student.account_id,
                                              ['B', 'Z'])
        self.assertTrue(account.is_approved)
        self.assertEqual(account.approved_course_ids, {'A', 'C'})

    def test_list_pending(self):
        """Only unapproved students are pending."""
        with self.app.app_context():
            other = accounts.create_account(
                _registration(username='bob', email='bob@coursegate.org'),
                rounds=10
            )
            accounts.set_approval(other.account_id, True, ['A'])
            pending = accounts.list_pending()
        self.assertEqual([a.account_id for a in pending],
                         [self.student.account_id])

    def test_approve_nonexistant_account(self):
        """Approving an unknown account raises NoSuchAccount."""
        with self.app.app_context():
            with self.assertRaises(NoSuchAccount):
                accounts.set_approval(999, True, ['A'])


class TestUpdateProfile(AccountsTestCase):
    """Tests for :func:`accounts.update_profile`."""

    def test_partial_update(self):
        """Fields that are not provided are left alone."""
        with self.app.app_context():
            account = accounts.create_account(_registration(), rounds=10)
            updated = accounts.update_profile(account.account_id,
                                              last_name='Hargreaves')
        self.assertEqual(updated.name,
                         domain.UserFullName('Alice', 'Hargreaves'))
        self.assertEqual(updated.email, account.email)


class TestListAccounts(AccountsTestCase):
    """Tests for :func:`accounts.list_accounts`."""

    def test_all_accounts(self):
        """Every account is listed, approved or not, students and admins."""
        with self.app.app_context():
            student = accounts.create_account(_registration(), rounds=10)
            admin = accounts.create_account(
                _registration(username='root', email='root@coursegate.org',
                              role=domain.ADMIN),
                rounds=10
            )
            accounts.set_approval(admin.account_id, True)
            listed = accounts.list_accounts()
        self.assertEqual([a.account_id for a in listed],
                         [student.account_id, admin.account_id])
