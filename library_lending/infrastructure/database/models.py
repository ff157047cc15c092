"""SQLAlchemy ORM models for books, members and loans"""

from sqlalchemy import Column, String, Integer, BigInteger, Date, DateTime, ForeignKey, Text, CheckConstraint
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

from library_lending.domain.models import LoanStatus, MembershipStatus

Base = declarative_base()


class Book(Base):
    """Catalogue entry with its copy inventory"""

    __tablename__ = "book"
    __table_args__ = (
        CheckConstraint(
            "available_copies >= 0 AND available_copies <= total_copies",
            name="ck_book_available_copies_range",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    isbn = Column(String(20), unique=True, nullable=True)
    total_copies = Column(Integer, nullable=False, default=1)
    available_copies = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Member(Base):
    """Registered library member"""

    __tablename__ = "member"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    membership_status = Column(String(20), nullable=False, default=MembershipStatus.ACTIVE.value)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Loan(Base):
    """One borrowing of a book copy by a member"""

    __tablename__ = "loan"
    __table_args__ = (CheckConstraint("due_date >= borrow_date", name="ck_loan_due_after_borrow"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    book_id = Column(Integer, ForeignKey("book.id"), nullable=False, index=True)
    member_id = Column(Integer, ForeignKey("member.id"), nullable=False, index=True)
    borrow_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    return_date = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default=LoanStatus.BORROWED.value, index=True)
    fine_cents = Column(BigInteger, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
