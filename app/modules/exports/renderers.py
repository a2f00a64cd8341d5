# A renderer returns (content, media_type, extension) for a snapshot.
import csv
import io
import json
import re
from decimal import Decimal
from typing import Callable

from app.modules.exports.schemas import ExportSnapshot

Renderer = Callable[[ExportSnapshot], tuple[bytes, str, str]]

def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (text or "").lower()).strip("-")
    return slug or "asset"

def _num(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None

def _label(ref) -> dict | None:
    if ref is None:
        return None
    return {"id": str(ref.id), "name": ref.name, "color": ref.color}

def _audio_document(snap: ExportSnapshot) -> dict:
    a = snap.asset
    total = sum((s.duration for s in snap.segments), Decimal("0"))
    coverage = round(float(total / a.duration_seconds * 100), 2) if a.duration_seconds else 0
    return {
        "segments": [
            {
                "id": str(s.id),
                "start_time": _num(s.start_time),
                "end_time": _num(s.end_time),
                "duration": _num(s.duration),
                "label": _label(s.label),
                "notes": s.notes,
            }
            for s in snap.segments
        ],
        "statistics": {
            "total_segments": len(snap.segments),
            "total_labeled_duration": float(total),
            "coverage_percentage": coverage,
        },
    }

def _image_document(snap: ExportSnapshot) -> dict:
    return {
        "dimensions": {"width": snap.asset.width, "height": snap.asset.height},
        "annotations": [
            {
                "id": str(r.id),
                "bounding_box": {
                    "x": _num(r.x),
                    "y": _num(r.y),
                    "width": _num(r.width),
                    "height": _num(r.height),
                },
                "label": _label(r.label),
                "notes": r.notes,
            }
            for r in snap.regions
        ],
        "statistics": {"total_annotations": len(snap.regions)},
    }

def build_document(snap: ExportSnapshot) -> dict:
    a = snap.asset
    doc = {
        "asset_id": str(a.id),
        "kind": a.kind,
        "filename": a.original_filename,
        "title": a.title,
        "description": a.description,
        "duration": _num(a.duration_seconds),
        "owner_id": str(a.owner_id),
        "status": a.status,
        "labeled_at": a.labeled_at.isoformat() if a.labeled_at else None,
        "exported_at": a.exported_at.isoformat() if a.exported_at else None,
        "snapshot_taken_at": snap.taken_at.isoformat(),
        "metadata": a.metadata,
        "labels": [
            {"id": str(lb.id), "name": lb.name, "color": lb.color, "description": lb.description, "is_active": lb.is_active}
            for lb in snap.labels
        ],
    }
    doc.update(_audio_document(snap) if a.kind == "audio" else _image_document(snap))
    return doc

def render_json(snap: ExportSnapshot) -> tuple[bytes, str, str]:
    return json.dumps(build_document(snap), indent=2).encode("utf-8"), "application/json", "json"

def render_csv(snap: ExportSnapshot) -> tuple[bytes, str, str]:
    out = io.StringIO()
    w = csv.writer(out)
    if snap.asset.kind == "audio":
        w.writerow(["segment_id", "label", "color", "start_time", "end_time", "duration", "notes"])
        for s in snap.segments:
            w.writerow([str(s.id), s.label.name if s.label else "", s.label.color if s.label else "",
                        s.start_time, s.end_time, s.duration, s.notes or ""])
    else:
        w.writerow(["region_id", "label", "color", "x", "y", "width", "height", "notes"])
        for r in snap.regions:
            w.writerow([str(r.id), r.label.name if r.label else "", r.label.color if r.label else "",
                        r.x, r.y, r.width, r.height, r.notes or ""])
    return out.getvalue().encode("utf-8"), "text/csv", "csv"

RENDERERS: dict[str, Renderer] = {
    "json": render_json,
    "csv": render_csv,
}

def artifact_filename(snap: ExportSnapshot, ext: str) -> str:
    suffix = "segments" if snap.asset.kind == "audio" else "annotations"
    return f"{slugify(snap.asset.title or snap.asset.original_filename)}_{suffix}.{ext}"
