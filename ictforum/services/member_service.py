"""
Member Service — ICT Forum membership applications.

Applications arrive from a public multipart form in which each section is a
JSON object (or a JSON string). All field errors are collected and reported
in one ValidationError whose ``details`` map dotted field paths to messages.

One application per citizenship id and per email; duplicates are rejected
with ConflictError. Uploaded documents are validated before any upload and
removed best-effort when the application is deleted.
"""

import json
import logging
import os
from datetime import datetime, timezone

from sqlalchemy import func, or_, select

from ictforum.core.exceptions import ConflictError, NotFoundError, StorageError, ValidationError
from ictforum.models import db
from ictforum.models.member import (
    AREAS_OF_EXPERTISE,
    DOCUMENT_FIELDS,
    GENDERS,
    MEMBER_STATUSES,
    MEMBERSHIP_LEVELS,
    MEMBERSHIP_TYPES,
    ORGANIZATION_TYPES,
    WORKING_DOMAINS,
    MemberApplication,
    MemberStatus,
)
from ictforum.services.blob_store import delete_quietly, get_blob_store
from ictforum.services.user_service import normalize_email
from ictforum.utils.helpers import commit_or_raise, like_pattern, paginate, parse_bool, parse_date

logger = logging.getLogger(__name__)

SECTIONS = {
    "generalInfo": "general_info",
    "professionalDetails": "professional_details",
    "membershipDetails": "membership_details",
    "endorsement": "endorsement",
    "declaration": "declaration",
}

DOCUMENT_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "pdf", "webp"})
DOCUMENT_MAX_BYTES = 10 * 1024 * 1024
DOCUMENT_FOLDER = "members"

DEFAULT_ENDORSEMENT_POSITIONS = {
    "provinceCoordinator": "Province / Palika ICT Coordinator",
    "executiveMember": "ICT Forum Executive Member",
}


# ── Parsing ───────────────────────────────────────────────────────────────────


def parse_section(value, name: str) -> dict:
    """Accept a dict or a JSON-encoded object; missing sections become {}."""
    if value is None or value == "":
        return {}
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError as exc:
            raise ValidationError(f"{name} is not valid JSON", details={name: "invalid JSON"}) from exc
    if not isinstance(value, dict):
        raise ValidationError(f"{name} must be an object", details={name: "must be an object"})
    return value


class _Errors:
    """Collects field errors so one response lists every problem."""

    def __init__(self):
        self.details: dict[str, str] = {}

    def add(self, path: str, message: str):
        self.details.setdefault(path, message)

    def required(self, section: dict, key: str, path: str):
        value = section.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            self.add(path, "is required")
            return None
        return value.strip() if isinstance(value, str) else value

    def choice(self, section: dict, key: str, path: str, allowed):
        value = self.required(section, key, path)
        if value is not None and value not in allowed:
            self.add(path, f"must be one of: {', '.join(allowed)}")
        return value

    def choices(self, section: dict, key: str, path: str, allowed) -> list:
        value = section.get(key)
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list) or not value:
            self.add(path, "at least one value is required")
            return []
        unknown = [v for v in value if v not in allowed]
        if unknown:
            self.add(path, f"unknown values {unknown}; allowed: {', '.join(allowed)}")
        return value

    def raise_if_any(self):
        if self.details:
            first = next(iter(self.details.items()))
            raise ValidationError(f"{first[0]} {first[1]}", details=self.details)


def _validate_general(section: dict, errors: _Errors) -> dict:
    out = dict(section)
    out["fullName"] = errors.required(section, "fullName", "generalInfo.fullName")
    out["gender"] = errors.choice(section, "gender", "generalInfo.gender", GENDERS)

    dob_raw = errors.required(section, "dateOfBirth", "generalInfo.dateOfBirth")
    if dob_raw is not None:
        dob = parse_date(dob_raw)
        if dob is None:
            errors.add("generalInfo.dateOfBirth", "must be a date (YYYY-MM-DD)")
        else:
            out["dateOfBirth"] = dob.isoformat()

    citizenship = errors.required(section, "citizenshipId", "generalInfo.citizenshipId")
    out["citizenshipId"] = str(citizenship) if citizenship is not None else None
    out["contactNumber"] = errors.required(section, "contactNumber", "generalInfo.contactNumber")

    email = errors.required(section, "email", "generalInfo.email")
    if email is not None:
        try:
            out["email"] = normalize_email(str(email))
        except ValidationError:
            errors.add("generalInfo.email", "is not a valid email address")

    address = section.get("permanentAddress")
    if not isinstance(address, dict):
        errors.add("generalInfo.permanentAddress", "is required")
    else:
        address = dict(address)
        for key in ("province", "district", "palika"):
            address[key] = errors.required(address, key, f"generalInfo.permanentAddress.{key}")
        ward = errors.required(address, "wardNo", "generalInfo.permanentAddress.wardNo")
        if ward is not None:
            try:
                address["wardNo"] = int(ward)
            except (TypeError, ValueError):
                errors.add("generalInfo.permanentAddress.wardNo", "must be a number")
        out["permanentAddress"] = address
    out["currentAddress"] = errors.required(section, "currentAddress", "generalInfo.currentAddress")
    return out


def _validate_professional(section: dict, errors: _Errors) -> dict:
    out = dict(section)
    out["organizationName"] = errors.required(
        section, "organizationName", "professionalDetails.organizationName")
    out["designation"] = errors.required(section, "designation", "professionalDetails.designation")
    out["organizationType"] = errors.choice(
        section, "organizationType", "professionalDetails.organizationType", ORGANIZATION_TYPES)

    experience = errors.required(section, "workExperience", "professionalDetails.workExperience")
    if experience is not None:
        try:
            years = float(experience)
        except (TypeError, ValueError):
            years = None
        if years is None or years < 0:
            errors.add("professionalDetails.workExperience", "must be a number >= 0")
        else:
            out["workExperience"] = int(years) if years.is_integer() else years

    out["areaOfExpertise"] = errors.choices(
        section, "areaOfExpertise", "professionalDetails.areaOfExpertise", AREAS_OF_EXPERTISE)
    out["otherExpertise"] = section.get("otherExpertise") or ""
    return out


def _validate_membership(section: dict, errors: _Errors) -> dict:
    out = dict(section)
    out["membershipLevel"] = errors.choice(
        section, "membershipLevel", "membershipDetails.membershipLevel", MEMBERSHIP_LEVELS)
    out["provincePalikaName"] = errors.required(
        section, "provincePalikaName", "membershipDetails.provincePalikaName")
    out["membershipType"] = errors.choice(
        section, "membershipType", "membershipDetails.membershipType", MEMBERSHIP_TYPES)
    out["preferredWorkingDomain"] = errors.choices(
        section, "preferredWorkingDomain", "membershipDetails.preferredWorkingDomain", WORKING_DOMAINS)
    out["motivation"] = errors.required(section, "motivation", "membershipDetails.motivation")
    return out


def _normalize_endorsement(section: dict) -> dict:
    out = dict(section)
    for role, position in DEFAULT_ENDORSEMENT_POSITIONS.items():
        entry = out.get(role)
        entry = dict(entry) if isinstance(entry, dict) else {}
        entry.setdefault("position", position)
        out[role] = entry
    return out


def _validate_declaration(section: dict, errors: _Errors) -> dict:
    out = dict(section)
    if parse_bool(section.get("agreed"), default=False) is not True:
        errors.add("declaration.agreed", "must be accepted")
    out["agreed"] = parse_bool(section.get("agreed"), default=False)
    out["signature"] = errors.required(section, "signature", "declaration.signature")
    out["date"] = section.get("date") or datetime.now(timezone.utc).isoformat()
    return out


def validate_application(sections: dict) -> dict:
    """Validate and normalise all five sections. Returns a new sections dict."""
    errors = _Errors()
    cleaned = {
        "generalInfo": _validate_general(sections.get("generalInfo") or {}, errors),
        "professionalDetails": _validate_professional(sections.get("professionalDetails") or {}, errors),
        "membershipDetails": _validate_membership(sections.get("membershipDetails") or {}, errors),
        "endorsement": _normalize_endorsement(sections.get("endorsement") or {}),
        "declaration": _validate_declaration(sections.get("declaration") or {}, errors),
    }
    errors.raise_if_any()
    return cleaned


def _validate_documents(documents: dict) -> None:
    for field, file in documents.items():
        ext = os.path.splitext(file.filename or "")[1].lower().lstrip(".")
        if ext not in DOCUMENT_EXTENSIONS:
            raise ValidationError(
                f"{field} must be one of: {', '.join(sorted(DOCUMENT_EXTENSIONS))}",
                details={field: file.filename},
            )
        stream = file.stream
        stream.seek(0, os.SEEK_END)
        size = stream.tell()
        stream.seek(0)
        if size > DOCUMENT_MAX_BYTES:
            raise ValidationError(f"{field} may not exceed 10 MB", details={field: size})


def _check_duplicates(citizenship_id: str, email: str, exclude_id: int | None = None) -> None:
    stmt = select(MemberApplication).where(
        or_(MemberApplication.citizenship_id == citizenship_id, MemberApplication.email == email)
    )
    if exclude_id is not None:
        stmt = stmt.where(MemberApplication.id != exclude_id)
    existing = db.session.execute(stmt.limit(1)).scalar_one_or_none()
    if existing:
        field = "citizenshipId" if existing.citizenship_id == citizenship_id else "email"
        raise ConflictError(
            "Member", field, message="Member with this Citizenship ID or Email already exists",
        )


def _apply_sections(member: MemberApplication, cleaned: dict) -> None:
    for key, attr in SECTIONS.items():
        setattr(member, attr, cleaned[key])
    general = cleaned["generalInfo"]
    member.full_name = general["fullName"]
    member.email = general["email"]
    member.citizenship_id = general["citizenshipId"]
    member.province = general["permanentAddress"]["province"]
    member.membership_level = cleaned["membershipDetails"]["membershipLevel"]


def _current_sections(member: MemberApplication) -> dict:
    return {key: dict(getattr(member, attr) or {}) for key, attr in SECTIONS.items()}


# ── Public service functions ──────────────────────────────────────────────────


def create_application(sections: dict, documents: dict | None = None) -> MemberApplication:
    """Validate, upload documents and store a new ``pending`` application.

    ``documents`` maps DOCUMENT_FIELDS names to FileStorage-like objects.
    """
    cleaned = validate_application(sections)
    documents = {k: v for k, v in (documents or {}).items() if k in DOCUMENT_FIELDS and v}
    _validate_documents(documents)
    general = cleaned["generalInfo"]
    _check_duplicates(general["citizenshipId"], general["email"])

    store = get_blob_store()
    stored: dict = {}
    for field, file in documents.items():
        try:
            blob = store.put(file.stream, file.filename, file.mimetype, folder=DOCUMENT_FOLDER)
        except StorageError:
            for done in stored.values():
                delete_quietly(done["key"], store)
            raise
        stored[field] = {"filename": file.filename, "url": blob.url, "key": blob.key}

    member = MemberApplication(status=MemberStatus.PENDING.value, documents=stored)
    _apply_sections(member, cleaned)
    db.session.add(member)
    try:
        commit_or_raise("Member")
    except (ConflictError, StorageError):
        for done in stored.values():
            delete_quietly(done["key"], store)
        raise
    logger.info("Member application id=%s received (%d document(s))", member.id, len(stored))
    return member


def get_application(member_id: int) -> MemberApplication:
    member = db.session.get(MemberApplication, member_id)
    if not member:
        raise NotFoundError(resource="Member", resource_id=member_id)
    return member


def list_applications(
    page: int = 1,
    limit: int = 10,
    status: str | None = None,
    membership_level: str | None = None,
    province: str | None = None,
    search: str | None = None,
) -> tuple[list[MemberApplication], int]:
    """Newest first. ``search`` matches name, email or citizenship id."""
    stmt = select(MemberApplication)
    if status:
        if status not in MEMBER_STATUSES:
            raise ValidationError("Invalid status", details={"status": status})
        stmt = stmt.where(MemberApplication.status == status)
    if membership_level:
        stmt = stmt.where(MemberApplication.membership_level == membership_level)
    if province:
        stmt = stmt.where(MemberApplication.province == province)
    if search and search.strip():
        pattern = like_pattern(search)
        stmt = stmt.where(
            or_(
                func.lower(MemberApplication.full_name).like(pattern, escape="\\"),
                func.lower(MemberApplication.email).like(pattern, escape="\\"),
                func.lower(MemberApplication.citizenship_id).like(pattern, escape="\\"),
            )
        )
    stmt = stmt.order_by(MemberApplication.created_at.desc(), MemberApplication.id.desc())
    return paginate(stmt, page, limit)


def update_status(member_id: int, status) -> MemberApplication:
    if status not in MEMBER_STATUSES:
        raise ValidationError("Invalid status", details={"status": status})
    member = get_application(member_id)
    member.status = status
    commit_or_raise("Member")
    logger.info("Member application id=%s marked %s", member.id, status)
    return member


def update_application(member_id: int, fields: dict) -> MemberApplication:
    """Replace the supplied sections (and optionally status), then re-validate.

    The merged application must pass the same validation as a new one.
    """
    member = get_application(member_id)
    merged = _current_sections(member)
    for key in SECTIONS:
        if key in fields:
            merged[key] = parse_section(fields[key], key)
    cleaned = validate_application(merged)

    status = fields.get("status")
    if status is not None and status not in MEMBER_STATUSES:
        raise ValidationError("Invalid status", details={"status": status})

    general = cleaned["generalInfo"]
    _check_duplicates(general["citizenshipId"], general["email"], exclude_id=member.id)

    _apply_sections(member, cleaned)
    if status is not None:
        member.status = status
    commit_or_raise("Member")
    logger.info("Member application id=%s updated", member.id)
    return member


def delete_application(member_id: int) -> None:
    member = get_application(member_id)
    keys = [doc.get("key") for doc in (member.documents or {}).values()]
    db.session.delete(member)
    commit_or_raise("Member")
    for key in keys:
        delete_quietly(key)
    logger.info("Member application id=%s deleted", member_id)


def stats() -> dict:
    counts = dict(
        db.session.execute(
            select(MemberApplication.status, func.count(MemberApplication.id))
            .group_by(MemberApplication.status)
        ).all()
    )

    def _grouped(column):
        rows = db.session.execute(
            select(column, func.count(MemberApplication.id)).group_by(column).order_by(column)
        ).all()
        return [{"_id": key, "count": count} for key, count in rows]

    return {
        "total": sum(counts.values()),
        "pending": counts.get(MemberStatus.PENDING.value, 0),
        "approved": counts.get(MemberStatus.APPROVED.value, 0),
        "rejected": counts.get(MemberStatus.REJECTED.value, 0),
        "byMembershipLevel": _grouped(MemberApplication.membership_level),
        "byProvince": _grouped(MemberApplication.province),
    }
