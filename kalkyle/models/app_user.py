"""AppUser model - platform users with email/password authentication."""
import enum
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from werkzeug.security import generate_password_hash, check_password_hash
from kalkyle.database import Base, BigIntPK
from kalkyle.utils.formatters import iso


class UserRole(enum.Enum):
    """Platform roles. Admins maintain the shared catalog."""
    ADMIN = 'admin'
    USER = 'user'


class AppUser(Base):
    """AppUser model - each user is its own tenant (owner of quotes and settings)."""

    __tablename__ = 'app_user'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(200), nullable=False)
    company = Column(String(200), nullable=True)
    role = Column(String(20), nullable=False, default=UserRole.USER.value)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    settings = relationship('CompanySettings', back_populates='owner', uselist=False, cascade='all, delete-orphan')

    def set_password(self, password):
        """Set password hash."""
        self.password_hash = generate_password_hash(password, method='scrypt')

    def check_password(self, password):
        """Check password against hash."""
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN.value

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'company': self.company,
            'role': self.role,
            'created_at': iso(self.created_at),
        }

    def __repr__(self):
        return f"<AppUser(id={self.id}, email='{self.email}', role='{self.role}')>"
