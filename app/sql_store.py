# app/sql_store.py
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, TypeVar

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    Index,
    String,
    case,
    create_engine,
    delete,
    select,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .database import ProductStore, utcnow, validate_fields
from .errors import NotFound, StoreError, ValidationError
from .models import STOCK_MAX, Product, ProductFields, ProductFilter

logger = logging.getLogger(__name__)

Base = declarative_base()

T = TypeVar("T")


class ProductRow(Base):
    """Products table. Stock and price constraints are enforced by the database too."""

    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        Index("ix_products_category_name", "category", "name"),
    )

    id = Column(String(32), primary_key=True)
    name = Column(String(200), nullable=False)
    category = Column(String(120), nullable=False, default="Uncategorized")
    stock = Column(BigInteger, nullable=False, default=0)
    price = Column(Float, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone=True columns
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _to_product(row: ProductRow) -> Product:
    return Product(
        id=row.id,
        name=row.name,
        category=row.category,
        stock=row.stock,
        price=row.price,
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


class SqlProductStore(ProductStore):
    """Product store over a SQLAlchemy engine.

    The engine and its connection pool are created once and shared by every
    request. Blocking database calls run in the threadpool.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self.session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    @classmethod
    def connect(cls, url: str) -> "SqlProductStore":
        kwargs: Dict[str, Any] = {"pool_pre_ping": True}
        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if url in ("sqlite://", "sqlite:///:memory:"):
                kwargs["poolclass"] = StaticPool
        try:
            engine = create_engine(url, **kwargs)
            Base.metadata.create_all(bind=engine)
        except (SQLAlchemyError, ImportError) as exc:
            raise StoreError(f"could not connect to product store: {exc}") from exc
        logger.info(f"Connected product store ({engine.url.get_backend_name()})")
        return cls(engine)

    async def _run(self, fn: Callable[[Session], T]) -> T:
        return await run_in_threadpool(self._run_sync, fn)

    def _run_sync(self, fn: Callable[[Session], T]) -> T:
        try:
            with self.session_factory() as db, db.begin():
                return fn(db)
        except IntegrityError as exc:
            raise ValidationError("Validation failed: constraint violated") from exc
        except (DataError, OverflowError) as exc:
            raise ValidationError("Validation failed: value out of range") from exc
        except SQLAlchemyError as exc:
            raise StoreError(f"product store failure: {exc}") from exc

    @staticmethod
    def _get_row(db: Session, product_id: str) -> ProductRow:
        row = db.get(ProductRow, product_id)
        if row is None:
            raise NotFound()
        return row

    async def insert(self, fields: Dict[str, Any]) -> Product:
        validated = validate_fields(fields)

        def _insert(db: Session) -> Product:
            now = utcnow()
            row = ProductRow(id=uuid.uuid4().hex, created_at=now, updated_at=now, **validated.model_dump())
            db.add(row)
            db.flush()
            return _to_product(row)

        return await self._run(_insert)

    async def get_by_id(self, product_id: str) -> Product:
        return await self._run(lambda db: _to_product(self._get_row(db, product_id)))

    async def query(self, product_filter: ProductFilter) -> List[Product]:
        stmt = select(ProductRow)
        if product_filter.text:
            stmt = stmt.where(
                ProductRow.name.icontains(product_filter.text, autoescape=True)
                | ProductRow.category.icontains(product_filter.text, autoescape=True)
            )
        if product_filter.category is not None:
            stmt = stmt.where(ProductRow.category == product_filter.category)
        if product_filter.min_stock is not None:
            stmt = stmt.where(ProductRow.stock >= product_filter.min_stock)
        if product_filter.max_stock is not None:
            stmt = stmt.where(ProductRow.stock <= product_filter.max_stock)
        stmt = stmt.order_by(ProductRow.created_at.desc())

        return await self._run(lambda db: [_to_product(row) for row in db.scalars(stmt)])

    async def replace(self, product_id: str, fields: Dict[str, Any]) -> Product:
        validated = validate_fields(fields)

        def _replace(db: Session) -> Product:
            row = self._get_row(db, product_id)
            for key, value in validated.model_dump().items():
                setattr(row, key, value)
            row.updated_at = utcnow()
            db.flush()
            return _to_product(row)

        return await self._run(_replace)

    async def patch(self, product_id: str, fields: Dict[str, Any]) -> Product:
        def _patch(db: Session) -> Product:
            row = db.get(ProductRow, product_id, with_for_update=True)
            if row is None:
                raise NotFound()
            current = {key: getattr(row, key) for key in ProductFields.model_fields}
            validated = validate_fields({**current, **fields})
            for key in fields:
                setattr(row, key, getattr(validated, key))
            row.updated_at = utcnow()
            db.flush()
            return _to_product(row)

        return await self._run(_patch)

    async def apply_stock_delta(self, product_id: str, delta: int) -> Product:
        new_stock = ProductRow.stock + delta

        def _apply(db: Session) -> Product:
            # single UPDATE, so the database serializes concurrent deltas on one row;
            # the WHERE guard keeps stock + delta inside the BIGINT range
            stmt = update(ProductRow).where(ProductRow.id == product_id)
            if delta > 0:
                stmt = stmt.where(ProductRow.stock <= STOCK_MAX - delta)
            result = db.execute(
                stmt.values(stock=case((new_stock < 0, 0), else_=new_stock), updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                if db.get(ProductRow, product_id) is None:
                    raise NotFound()
                raise ValidationError("Validation failed: stock: out of range")
            row = db.get(ProductRow, product_id, populate_existing=True)
            return _to_product(row)

        return await self._run(_apply)

    async def delete(self, product_id: str) -> bool:
        def _delete(db: Session) -> bool:
            result = db.execute(delete(ProductRow).where(ProductRow.id == product_id))
            return result.rowcount > 0

        return await self._run(_delete)

    async def close(self) -> None:
        await run_in_threadpool(self.engine.dispose)
