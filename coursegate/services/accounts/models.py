"""SQLAlchemy models for the accounts datastore."""

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

db: SQLAlchemy = SQLAlchemy()


class DBAccount(db.Model):
    """Persistence for :class:`domain.Account`."""

    __tablename__ = 'accounts'

    account_id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(64), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(128), nullable=True)
    first_name = Column(String(255), nullable=False, default='')
    last_name = Column(String(255), nullable=False, default='')
    role = Column(String(16), nullable=False, default='student')
    is_email_verified = Column(Boolean, nullable=False, default=False)
    is_approved = Column(Boolean, nullable=False, default=False)
    external_id = Column(String(255), nullable=True)
    profile_image_url = Column(String(1024), nullable=True)
    created_at = Column(Integer, nullable=False)
    approved_at = Column(Integer, nullable=True)
    approved_by = Column(ForeignKey('accounts.account_id'), nullable=True)

    grants = relationship('DBCourseGrant', back_populates='account',
                          cascade='all, delete-orphan', lazy='joined')


class DBCourseGrant(db.Model):
    """Grants an approved account access to a single course."""

    __tablename__ = 'account_course_grants'

    account_id = Column(ForeignKey('accounts.account_id'), primary_key=True)
    course_id = Column(String(64), primary_key=True)

    account = relationship('DBAccount', back_populates='grants')


class DBVerificationChallenge(db.Model):
    """Persistence for :class:`domain.VerificationChallenge`."""

    __tablename__ = 'verification_challenges'

    challenge_id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(ForeignKey('accounts.account_id'), nullable=False,
                        unique=True)
    code = Column(String(16), nullable=False)
    created_at = Column(Integer, nullable=False)
    expires_at = Column(Integer, nullable=False)
