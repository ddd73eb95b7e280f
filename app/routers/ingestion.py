from fastapi import APIRouter, UploadFile, File, Depends
from sqlalchemy.orm import Session
from sqlalchemy import select
import pandas as pd
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional
import logging, uuid, io
from app.db import get_db, atomic
from app.models import Department, Employee, EmployeeStatus
from app.core.config import get_settings
from app.core.errors import InvalidInput, NotFound
from app.core.security import ActiveSession, require_session
from app.schemas import ApiResponse

router = APIRouter()
MAX_ROWS = 10000
logger = logging.getLogger("ingestion")
logger.setLevel(logging.INFO)

# -------- utilidades --------
READ_CSV_KW = dict(
    dtype=str,
    keep_default_na=False,
    na_values=["", " ", "NA", "NaN", "nan", "NULL", "Null", "None", "none"],
    encoding="utf-8",
)

def _parse_csv(source, name: str, **kw) -> pd.DataFrame:
    """pd.read_csv com erros de leitura convertidos em InvalidInput."""
    try:
        return pd.read_csv(source, **READ_CSV_KW, **kw)
    except pd.errors.EmptyDataError as exc:
        raise InvalidInput(f"Arquivo {name} vazio ou sem cabeçalho") from exc
    except UnicodeDecodeError as exc:
        raise InvalidInput(f"Arquivo {name} não está em UTF-8") from exc
    except pd.errors.ParserError as exc:
        raise InvalidInput(f"CSV malformado em {name}: {exc}") from exc

def _read_csv_path(filename: str, offset: int = 0, limit: int | None = None):
    settings = get_settings()
    path = (settings.data_path / filename).resolve()
    if settings.data_path not in path.parents:
        raise InvalidInput(f"Arquivo fora de DATA_DIR: {filename}")
    if not path.exists():
        raise NotFound(f"Não existe {path}")
    df = _parse_csv(path, filename, skiprows=range(1, offset + 1), nrows=limit)
    with path.open("r", encoding="utf-8", errors="ignore") as f:
        total = max(sum(1 for _ in f) - 1, 0)
    return df, total

def _read_csv_upload(file: UploadFile, offset: int = 0, limit: int | None = None):
    raw = file.file.read()
    df_full = _parse_csv(io.BytesIO(raw), file.filename or "enviado")
    total = len(df_full)
    df = df_full.iloc[offset: offset + limit if limit is not None else None]
    return df, total
# --- normalização/parse ---
def _clean(s) -> Optional[str]:
    if s is None:
        return None
    s = str(s).strip()
    if not s or s.lower() in {"nan", "none", "null"}:
        return None
    return s
def _to_date_safe(s: str):
    """Devolve date ou None. Nunca NaT."""
    s = _clean(s)
    if s is None:
        return None
    # ISO: 2021-07-27T16:02:08Z, 2021-07-27 16:02:08, 2021-07-27
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    ts = pd.to_datetime(s, errors="coerce", dayfirst=True)  # 27/07/2021
    if pd.isna(ts):
        return None
    return ts.date()
def _validate_len(df: pd.DataFrame):
    if len(df) == 0:
        raise InvalidInput("O CSV não tem linhas")
    if len(df) > MAX_ROWS:
        raise InvalidInput(f"O CSV da requisição deve ter entre 1 e {MAX_ROWS} linhas")

def _ensure_dir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)

def _start_batch(prefix: str) -> tuple[str, Path]:
    """Cria um batch_id e o diretório de rejeitados desta execução."""
    ts = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    batch_id = f"{ts}_{uuid.uuid4().hex[:8]}"
    settings = get_settings()
    err_dir = settings.data_path / "errors" / prefix
    _ensure_dir(err_dir)
    return batch_id, err_dir

def _write_rejected_csv(err_dir: Path, batch_id: str, rows: list[dict]) -> Path | None:
    if not rows:
        return None
    df_err = pd.DataFrame(rows)
    out = err_dir / f"rejected_{batch_id}.csv"
    df_err.to_csv(out, index=False, encoding="utf-8")
    return out


# -------- employees.csv --------
REQUIRED_EMPLOYEES = ["full_name", "registration", "admission_date"]

def ingest_employees(df: pd.DataFrame, db: Session) -> dict:
    """Upsert por matrícula. Linhas inválidas vão para o CSV de rejeitados."""
    missing = [c for c in REQUIRED_EMPLOYEES if c not in df.columns]
    if missing:
        raise InvalidInput(f"Faltam colunas {missing}")

    batch_id, err_dir = _start_batch("employees")
    created = updated = 0
    skipped_bad_row = skipped_missing_fk = 0
    rejected_rows: list[dict] = []
    departments = {d.name.lower(): d.id for d in db.scalars(select(Department)).all()}
    seen: set[str] = set()

    with atomic(db):
        for idx, row in df.iterrows():
            name = _clean(row.get("full_name"))
            registration = _clean(row.get("registration"))
            admission = _to_date_safe(row.get("admission_date"))
            national_id = _clean(row.get("national_id"))
            dep_name = _clean(row.get("department"))

            def reject(reason: str):
                rejected_rows.append({
                    "reason": reason,
                    "row_index": int(idx),
                    "full_name": row.get("full_name"),
                    "registration": row.get("registration"),
                    "admission_date": row.get("admission_date"),
                    "department": row.get("department"),
                })
                logger.info("reject_row", extra={
                    "table": "employees", "batch_id": batch_id, "reason": reason, "row_index": int(idx)
                })

            if name is None or registration is None or admission is None:
                skipped_bad_row += 1
                reject("invalid_name_or_registration_or_date")
                continue
            if registration in seen:
                skipped_bad_row += 1
                reject("duplicate_registration_in_file")
                continue
            seen.add(registration)

            dep_id = None
            if dep_name is not None:
                dep_id = departments.get(dep_name.lower())
                if dep_id is None:
                    skipped_missing_fk += 1
                    reject("department_not_found")
                    continue

            emp = db.scalars(select(Employee).where(Employee.registration == registration)).first()
            if emp is None:
                db.add(Employee(
                    full_name=name,
                    registration=registration,
                    national_id=national_id,
                    department_id=dep_id,
                    admission_date=admission,
                    status=EmployeeStatus.ACTIVE,
                ))
                created += 1
            else:
                emp.full_name = name
                emp.admission_date = admission
                if national_id is not None:
                    emp.national_id = national_id
                if dep_id is not None:
                    emp.department_id = dep_id
                updated += 1

    rejected_file = _write_rejected_csv(err_dir, batch_id, rejected_rows)
    return {
        "rows": len(df),
        "created": created,
        "updated": updated,
        "skipped_bad_row": skipped_bad_row,
        "skipped_missing_fk": skipped_missing_fk,
        "batch_id": batch_id,
        "rejected_file": str(rejected_file) if rejected_file else None,
    }


def _check_limit(limit: int):
    if limit <= 0 or limit > MAX_ROWS:
        raise InvalidInput(f"limit deve ser 1..{MAX_ROWS}")

@router.post("/ingestion/employees/csv", tags=["Ingestion"], response_model=ApiResponse[dict],
             summary="Importar funcionários por lotes (multipart)")
def ingest_employees_csv(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
    offset: int = 0,
    limit: int = MAX_ROWS,
):
    _check_limit(limit)
    df, total = _read_csv_upload(file, offset=offset, limit=limit)
    _validate_len(df)
    result = ingest_employees(df, db)
    result.update({"offset": offset, "limit": limit, "total": total})
    return ApiResponse.ok(result)


@router.post("/ingestion/employees/file/{filename}", tags=["Ingestion"], response_model=ApiResponse[dict],
             summary="Ler funcionários de DATA_DIR por lotes")
def ingest_employees_file(
    filename: str,
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
    offset: int = 0,
    limit: int = MAX_ROWS,
):
    _check_limit(limit)
    df, total = _read_csv_path(filename, offset=offset, limit=limit)
    _validate_len(df)
    result = ingest_employees(df, db)
    result.update({"offset": offset, "limit": limit, "total": total})
    return ApiResponse.ok(result)
