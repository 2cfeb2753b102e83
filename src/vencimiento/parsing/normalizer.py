"""Map backend JSON records to TrackedEntity snapshots.

One normalizer per backend resource. Records come from the REST backend
as-is; anything missing or malformed degrades to "no date" or is skipped
with a warning, never raised.
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError

from vencimiento.alerts.alert_models import EntityKind, TrackedEntity
from vencimiento.alerts.due_dates import derive_plan_status
from vencimiento.utils.logging import get_logger

logger = get_logger(__name__)

SNAPSHOT_COLLECTIONS = (
    "habilitaciones",
    "servicios",
    "planes_mejora",
    "autoevaluaciones",
    "hallazgos",
)


def parse_date_field(value: Any) -> Optional[date]:
    """
    Parse a backend date field into a calendar date.

    Handles:
    - Date-only strings (YYYY-MM-DD)
    - ISO datetime strings; aware values are truncated in UTC, naive ones as-is
    - date / datetime objects
    - Empty, missing or unparseable values - returns None
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.date()
        return value.astimezone(timezone.utc).date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        logger.warning(f"Ignoring non-string date value: {value!r}")
        return None

    text = value.strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Unparseable date value: {value!r}")
        return None
    if parsed.tzinfo is None:
        return parsed.date()
    return parsed.astimezone(timezone.utc).date()


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _metadata(**fields: Any) -> Dict[str, str]:
    """Drop empty values so display fallbacks kick in."""
    return {key: _text(value) for key, value in fields.items() if _text(value)}


def _nested(record: Mapping[str, Any], key: str, field: str) -> Any:
    nested = record.get(key)
    if isinstance(nested, Mapping):
        return nested.get(field)
    return None


def normalize_habilitacion(record: Mapping[str, Any]) -> TrackedEntity:
    """DatosPrestador record -> HABILITACION entity."""
    sede = _nested(record, "headquarters_detail", "name") or _nested(record, "headquarters", "nombre")
    return TrackedEntity(
        id=_text(record.get("id")),
        kind=EntityKind.HABILITACION,
        due_date=parse_date_field(record.get("fecha_vencimiento_habilitacion")),
        status=_text(record.get("estado_habilitacion")),
        metadata=_metadata(
            codigo_reps=record.get("codigo_reps"),
            sede=sede,
            company=_nested(record, "company_detail", "name") or record.get("company_name"),
        ),
    )


def normalize_servicio(record: Mapping[str, Any]) -> TrackedEntity:
    """ServicioSede record -> SERVICIO entity."""
    return TrackedEntity(
        id=_text(record.get("id")),
        kind=EntityKind.SERVICIO,
        due_date=parse_date_field(record.get("fecha_vencimiento")),
        status=_text(record.get("estado_habilitacion")),
        metadata=_metadata(
            codigo_servicio=record.get("codigo_servicio"),
            nombre_servicio=record.get("nombre_servicio"),
            sede=_nested(record, "headquarters", "nombre"),
            codigo_reps=_nested(record, "datos_prestador", "codigo_reps"),
        ),
    )


def normalize_plan_mejora(
    record: Mapping[str, Any],
    reference: Optional[date | datetime] = None,
) -> TrackedEntity:
    """
    PlanMejora record -> PLAN_MEJORA entity.

    When the backend omits `estado` and a reference is given, the status is
    derived from the due date and `porcentaje_avance`.
    """
    due_date = parse_date_field(record.get("fecha_vencimiento"))
    status = _text(record.get("estado"))
    if not status and reference is not None:
        status = derive_plan_status(reference, due_date, record.get("porcentaje_avance"))
    return TrackedEntity(
        id=_text(record.get("id")),
        kind=EntityKind.PLAN_MEJORA,
        due_date=due_date,
        status=status,
        metadata=_metadata(
            numero_plan=record.get("numero_plan"),
            porcentaje_avance=record.get("porcentaje_avance"),
        ),
    )


def normalize_autoevaluacion(record: Mapping[str, Any]) -> TrackedEntity:
    """Autoevaluacion record -> AUTOEVALUACION entity."""
    return TrackedEntity(
        id=_text(record.get("id")),
        kind=EntityKind.AUTOEVALUACION,
        due_date=parse_date_field(record.get("fecha_vencimiento")),
        status=_text(record.get("estado")),
        metadata=_metadata(
            numero_autoevaluacion=record.get("numero_autoevaluacion"),
            codigo_reps=_nested(record, "datos_prestador", "codigo_reps"),
        ),
    )


def normalize_hallazgo(record: Mapping[str, Any]) -> TrackedEntity:
    """Hallazgo record -> HALLAZGO entity (severity-driven, no due date)."""
    return TrackedEntity(
        id=_text(record.get("id")),
        kind=EntityKind.HALLAZGO,
        due_date=None,
        status=_text(record.get("estado")),
        metadata=_metadata(
            numero_hallazgo=record.get("numero_hallazgo"),
            severidad=record.get("severidad"),
            tipo=record.get("tipo"),
        ),
    )


def _normalize_collection(name: str, records: Any, normalize) -> List[TrackedEntity]:
    if records is None:
        return []
    if not isinstance(records, list):
        logger.warning(f"Snapshot collection '{name}' is not a list, skipping")
        return []

    entities: List[TrackedEntity] = []
    for record in records:
        if not isinstance(record, Mapping):
            logger.warning(f"Skipping non-object record in '{name}': {record!r}")
            continue
        if record.get("id") is None:
            logger.warning(f"Skipping record without id in '{name}'")
            continue
        try:
            entities.append(normalize(record))
        except ValidationError as e:
            logger.warning(f"Skipping invalid record {record.get('id')} in '{name}': {e}")
    return entities


def _normalize_prebuilt(records: Iterable[Any]) -> List[TrackedEntity]:
    entities: List[TrackedEntity] = []
    for record in records:
        if not isinstance(record, Mapping):
            logger.warning(f"Skipping non-object entity: {record!r}")
            continue
        try:
            entity = TrackedEntity.model_validate(record)
        except ValidationError as e:
            logger.warning(f"Skipping invalid entity {record.get('id')}: {e}")
            continue
        if not isinstance(entity.kind, EntityKind):
            logger.warning(
                f"Entity {entity.id} has unrecognized kind '{entity.kind}'; it will not produce alerts"
            )
        entities.append(entity)
    return entities


def normalize_snapshot(
    document: Mapping[str, Any],
    reference: Optional[date | datetime] = None,
) -> List[TrackedEntity]:
    """
    Normalize a whole backend snapshot into TrackedEntity objects.

    Collections are read in a fixed order (habilitaciones, servicios,
    planes_mejora, autoevaluaciones, hallazgos, then pre-normalized
    `entities`). Missing collections are fine: a partial load yields fewer
    entities, not an error.

    Args:
        document: Dict with any of the snapshot collections
        reference: Optional reference date used to derive missing plan statuses

    Returns:
        List of TrackedEntity
    """
    if not isinstance(document, Mapping):
        raise ValueError("Snapshot document must be a JSON object")

    normalizers = {
        "habilitaciones": normalize_habilitacion,
        "servicios": normalize_servicio,
        "planes_mejora": lambda record: normalize_plan_mejora(record, reference),
        "autoevaluaciones": normalize_autoevaluacion,
        "hallazgos": normalize_hallazgo,
    }

    entities: List[TrackedEntity] = []
    for name in SNAPSHOT_COLLECTIONS:
        entities.extend(_normalize_collection(name, document.get(name), normalizers[name]))

    prebuilt = document.get("entities")
    if isinstance(prebuilt, list):
        entities.extend(_normalize_prebuilt(prebuilt))
    elif prebuilt is not None:
        logger.warning("Snapshot 'entities' is not a list, skipping")

    logger.debug(f"Normalized {len(entities)} entities from snapshot")
    return entities
