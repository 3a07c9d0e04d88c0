from uuid import UUID, uuid4
from enum import Enum
from datetime import datetime, timezone, date
from typing import Type
import io
import json

import boto3
import numpy as np
import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq
from pydantic import BaseModel

from app.config import settings
from app.models.amount import Amount
from app.logging_config import get_logger
from app.models.schemas.audit import AuditLog

s3 = boto3.client("s3", region_name=settings.aws_region)
BUCKET_NAME = settings.s3_bucket
SENSITIVE_FIELDS = {"password", "hashed_password", "access_token", "refresh_token"}

logger = get_logger("storage")


def _list_keys(prefix: str) -> list[str]:
    paginator = s3.get_paginator("list_objects_v2")
    keys = []
    for page in paginator.paginate(Bucket=BUCKET_NAME, Prefix=prefix):
        keys.extend(obj["Key"] for obj in page.get("Contents", []))
    return keys


def _to_storable(value):
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Amount):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, dict)):
        return json.dumps(value, default=str)
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


def mark_old_version_as_stale(record_type: str, record_id, id_field: str, keep_key: str | None = None) -> int:
    """Flip ``is_current`` off on every stored version of a record except ``keep_key``; returns how many changed."""
    prefix = f"{record_type}/{id_field}={record_id}/"
    changed = 0

    for key in _list_keys(prefix):
        if key == keep_key:
            continue
        obj_data = s3.get_object(Bucket=BUCKET_NAME, Key=key)
        df = pq.read_table(io.BytesIO(obj_data["Body"].read())).to_pandas()

        if bool(df["is_current"].iloc[0]):
            df["is_current"] = False
            buffer = io.BytesIO()
            pq.write_table(pa.Table.from_pandas(df, preserve_index=False), buffer)
            s3.put_object(Bucket=BUCKET_NAME, Key=key, Body=buffer.getvalue())
            changed += 1

    return changed


def save_version(record, record_type: str, id_field: str) -> str:
    if isinstance(record, BaseModel):
        record_data = record.model_dump()
    elif isinstance(record, dict):
        record_data = dict(record)
    else:
        raise TypeError(f"Unsupported object type for save_version: {type(record)}")

    record_data = {k: _to_storable(v) for k, v in record_data.items()}
    df = pd.DataFrame([record_data])

    record_id = record_data[id_field]
    now = datetime.now(timezone.utc)
    timestamp = now.strftime("%Y%m%dT%H%M%S%fZ")

    # Hybrid partitioning: id → year → month → day
    key = (
        f"{record_type}/{id_field}={record_id}/"
        f"year={now.year}/month={now.month:02}/day={now.day:02}/"
        f"{record_type[:-1]}-{record_id}-{timestamp}-{uuid4().hex[:8]}.parquet"
    )

    table = pa.Table.from_pandas(df, preserve_index=False)
    out_buffer = pa.BufferOutputStream()
    pq.write_table(table, out_buffer)

    s3.put_object(
        Bucket=BUCKET_NAME,
        Key=key,
        Body=out_buffer.getvalue().to_pybytes()
    )
    return key


def _empty_df(schema) -> pd.DataFrame:
    return pd.DataFrame(columns=list(schema.model_fields.keys()))


def load_versions(
    record_type: str,
    schema: Type[BaseModel],
    record_id=None,
    id_field: str | None = None,
) -> pd.DataFrame:
    """Load every stored version of a record type, or of one record when ``record_id`` is given."""
    if record_id is not None:
        id_field = id_field or f"{record_type[:-1]}_id"
        prefix = f"{record_type}/{id_field}={record_id}/"
    else:
        prefix = f"{record_type}/"

    keys = _list_keys(prefix)
    if not keys:
        return _empty_df(schema)

    dfs = []
    for key in keys:
        obj = s3.get_object(Bucket=BUCKET_NAME, Key=key)
        dfs.append(pd.read_parquet(io.BytesIO(obj["Body"].read())))

    return pd.concat(dfs, ignore_index=True)


def current_rows(df: pd.DataFrame) -> pd.DataFrame:
    """Keep only the live version of each record (current and not tombstoned)."""
    if df.empty:
        return df
    is_current = df["is_current"].fillna(False).astype(bool)
    if "is_deleted" in df.columns:
        is_current &= ~df["is_deleted"].fillna(False).astype(bool)
    return df[is_current]


def load_current(record_type: str, schema: Type[BaseModel], **filters) -> pd.DataFrame:
    df = current_rows(load_versions(record_type, schema))
    for column, value in filters.items():
        if df.empty:
            break
        df = df[df[column].astype(str) == str(value)]
    return df


def _list_fields(schema: Type[BaseModel]) -> set[str]:
    return {
        name for name, field in schema.model_fields.items()
        if getattr(field.annotation, "__origin__", None) is list
    }


def row_to_model(row: dict, schema: Type[BaseModel]):
    """Rebuild a schema instance from a parquet row, undoing the storage encoding."""
    list_fields = _list_fields(schema)
    data = {}
    for k, v in row.items():
        if k not in schema.model_fields:
            continue
        if isinstance(v, np.generic):
            v = v.item()
        if v is None or (not isinstance(v, (list, str)) and pd.isna(v)):
            continue
        if isinstance(v, pd.Timestamp):
            v = v.to_pydatetime()
        if k in list_fields and isinstance(v, str):
            v = json.loads(v) if v else []
        data[k] = v
    return schema(**data)


def get_current(record_type: str, schema: Type[BaseModel], record_id, id_field: str):
    """Return the live version of one record as a model, or None."""
    df = load_versions(record_type, schema, record_id=record_id, id_field=id_field)
    if df.empty:
        return None
    df = df[df["is_current"].fillna(False).astype(bool)]
    if df.empty:
        return None
    # a replacement in flight can briefly leave two current versions; the newest wins
    if "updated_at" in df.columns:
        df = df.sort_values(by="updated_at", ascending=False, kind="mergesort")
    row = df.iloc[0].to_dict()
    if bool(row.get("is_deleted", False)):
        return None
    return row_to_model(row, schema)


def replace_version(record: BaseModel, record_type: str, id_field: str) -> BaseModel:
    """Write ``record`` as the new current version, then stale the older ones."""
    record_id = getattr(record, id_field)
    record = record.model_copy(update={
        "updated_at": datetime.now(timezone.utc),
        "is_current": True,
        "is_deleted": False,
    })
    key = save_version(record, record_type, id_field)
    mark_old_version_as_stale(record_type, record_id, id_field, keep_key=key)
    return record


def soft_delete_record(record: BaseModel, record_type: str, id_field: str) -> BaseModel:
    """
    Generic soft delete helper:
      - saves a new version with is_deleted=True and is_current=True
      - marks the older versions stale
    """
    record_id = getattr(record, id_field)

    deleted = record.model_copy(update={
        "updated_at": datetime.now(timezone.utc),
        "is_current": True,   # latest version will indicate deleted
        "is_deleted": True,
    })
    key = save_version(deleted, record_type, id_field)
    mark_old_version_as_stale(record_type, record_id, id_field, keep_key=key)
    logger.debug("Soft deleted %s %s", record_type, record_id)
    return deleted


def log_action(user_id: str | None, action: str, resource_type: str, resource_id: str | None, details: dict | None = None):
    # Normalize details: convert UUIDs and datetimes to strings
    normalized = {}
    for k, v in (details or {}).items():
        if k in SENSITIVE_FIELDS:
            normalized[k] = "***REDACTED***"
        elif isinstance(v, (UUID, Amount)):
            normalized[k] = str(v)
        elif isinstance(v, (datetime, date)):
            normalized[k] = v.isoformat()
        elif isinstance(v, Enum):
            normalized[k] = v.value
        else:
            normalized[k] = v
    details_json = json.dumps(normalized, default=str)

    entry = AuditLog(
        user_id=str(user_id) if user_id is not None else None,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        details=details_json,
    )

    save_version(entry, "audit_logs", "log_id")
