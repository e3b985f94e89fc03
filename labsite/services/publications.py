"""
Publication approval workflow.

Every change to a publication goes through this module:

* members create records in Pending and may edit them until Approved;
* editing a Rejected record re-submits it (back to Pending);
* `published_date` is write-once for the owner;
* an existing document must be removed before a new one is uploaded;
* only directors review, and only Pending records can be reviewed.
"""
import json
import logging
import math
from datetime import date, datetime, timedelta

from sqlalchemy import case, func, or_

from labsite.errors import (
    ApprovedPublicationError,
    DocumentReplaceError,
    InvalidTransitionError,
    NotFound,
    PermissionDenied,
    PublishedDateLockedError,
    ValidationError,
)
from labsite.models import db, DirectorActivity, Publication, User
from labsite.models.publication import (
    PUBLICATION_TYPES,
    STATUS_APPROVED,
    STATUS_PENDING,
    STATUS_REJECTED,
    can_transition,
)
from labsite.models.user import ROLE_DIRECTOR, ROLE_MEMBER
from labsite.services import documents
from labsite.services.notifications import notify

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ['type', 'title', 'publishing_year', 'authors', 'link', 'published_date']
REQUIRED_FIELDS = ['type', 'title', 'publishing_year', 'authors', 'link']
MIN_YEAR = 1900

SUMMARY_WINDOWS = [
    ('lastWeek', timedelta(days=7)),
    ('lastMonth', timedelta(days=30)),
    ('lastYear', timedelta(days=365)),
    ('last5Years', timedelta(days=5 * 365)),
]


# ==================== Field parsing ====================

def serialize_authors(authors):
    return json.dumps(list(authors))


def parse_authors(raw):
    """Accept a list or a JSON array string; names are kept verbatim and in order."""
    value = raw
    if isinstance(raw, str):
        try:
            value = json.loads(raw) if raw.strip() else []
        except ValueError:
            raise ValidationError({'authors': 'Authors must be a JSON array of names'})
    if not isinstance(value, list) or not all(isinstance(name, str) for name in value):
        raise ValidationError({'authors': 'Authors must be a list of names'})
    if any(not name.strip() for name in value):
        raise ValidationError({'authors': 'Author names cannot be blank'})
    return value


def _parse_year(raw):
    try:
        year = int(raw)
    except (TypeError, ValueError):
        raise ValidationError({'publishing_year': 'Year must be a number'})
    if year < MIN_YEAR or year > date.today().year + 1:
        raise ValidationError({'publishing_year': f'Year must be between {MIN_YEAR} and {date.today().year + 1}'})
    return year


def _parse_date(raw):
    if raw in (None, ''):
        return None
    if isinstance(raw, date):
        return raw
    try:
        # Accept both plain dates and full ISO timestamps from date pickers.
        return datetime.fromisoformat(str(raw).replace('Z', '+00:00')).date()
    except ValueError:
        raise ValidationError({'published_date': 'Published date must be an ISO date (YYYY-MM-DD)'})


def _is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def clean_publication_data(data, partial=False):
    """
    Validate submitted fields and convert them to column values.

    With partial=True only the fields present in `data` are checked, but a
    required field that is present may still not be blanked. All problems are
    reported together, one message per field.
    """
    errors = {}
    cleaned = {}

    for field in EDITABLE_FIELDS:
        if partial and field not in data:
            continue
        value = data.get(field)

        if field in REQUIRED_FIELDS and _is_blank(value):
            errors[field] = f"{field.replace('_', ' ').capitalize()} is required"
            continue

        try:
            if field in ('type', 'title', 'link') and not isinstance(value, str):
                raise ValidationError({field: f'{field.capitalize()} must be text'})
            if field == 'type':
                if value not in PUBLICATION_TYPES:
                    raise ValidationError({'type': 'Type must be one of: ' + ', '.join(PUBLICATION_TYPES)})
                cleaned['type'] = value
            elif field in ('title', 'link'):
                cleaned[field] = value.strip()
            elif field == 'publishing_year':
                cleaned['publishing_year'] = _parse_year(value)
            elif field == 'authors':
                authors = parse_authors(value)
                if not authors:
                    raise ValidationError({'authors': 'At least one author is required'})
                cleaned['authors'] = authors
            elif field == 'published_date':
                cleaned['published_date'] = _parse_date(value)
        except ValidationError as e:
            errors.update(e.errors)

    if errors:
        raise ValidationError(errors)
    return cleaned


# ==================== Lookups ====================

def get_publication(publication_id):
    publication = db.session.get(Publication, publication_id)
    if publication is None:
        raise NotFound('Publication not found')
    return publication


def get_owned_publication(publication_id, user):
    """Members only see their own records; anything else looks missing."""
    publication = db.session.get(Publication, publication_id)
    if publication is None or publication.owner_id != user.id:
        raise NotFound('Publication not found')
    return publication


def list_owner_publications(owner):
    return (Publication.query
            .filter_by(owner_id=owner.id)
            .order_by(Publication.created_at.desc(), Publication.id.desc())
            .all())


def list_approved_publications(pub_type=None):
    query = Publication.query.filter_by(approval_status=STATUS_APPROVED)
    if pub_type:
        query = query.filter_by(type=pub_type)
    return query.order_by(Publication.publishing_year.desc(), Publication.id.desc()).all()


# ==================== Member operations ====================

def create_publication(owner, data, document=None):
    if owner.role != ROLE_MEMBER:
        raise PermissionDenied('Only members can submit publications')

    cleaned = clean_publication_data(data)
    publication = Publication(
        owner_id=owner.id,
        approval_status=STATUS_PENDING,
        feedback=None,
        **cleaned
    )
    if documents.has_upload(document):
        publication.document_path = documents.save_document(document, owner.id)

    db.session.add(publication)
    db.session.flush()
    notify(f'New publication submitted by {owner.email}: {publication.title[:30]}',
           audience=ROLE_DIRECTOR, publication_id=publication.id)
    db.session.commit()

    logger.info('Publication %s added by %s', publication.id, owner.email,
                extra={'task': 'Add Publication'})
    return publication


def _check_can_modify(publication, actor):
    if actor.role == ROLE_DIRECTOR:
        return
    if publication.owner_id != actor.id:
        raise NotFound('Publication not found')
    if publication.is_approved:
        logger.warning('%s tried to modify approved publication %s', actor.email, publication.id,
                       extra={'task': 'Edit Publication'})
        raise ApprovedPublicationError()


def update_publication(publication, actor, data, document=None):
    """
    Apply a partial edit.

    Owners are held to the lifecycle rules; directors may edit any record
    without affecting its status.
    """
    _check_can_modify(publication, actor)
    is_director = actor.role == ROLE_DIRECTOR

    cleaned = clean_publication_data(data, partial=True)

    if (not is_director
            and 'published_date' in cleaned
            and publication.published_date is not None
            and cleaned['published_date'] != publication.published_date):
        raise PublishedDateLockedError()

    if documents.has_upload(document):
        if publication.document_path:
            raise DocumentReplaceError()
        cleaned['document_path'] = documents.save_document(document, publication.owner_id)

    for field, value in cleaned.items():
        setattr(publication, field, value)

    resubmitted = not is_director and publication.approval_status == STATUS_REJECTED
    if resubmitted:
        publication.approval_status = STATUS_PENDING

    if resubmitted:
        notify(f'Publication re-submitted by {actor.email}: {publication.title[:30]}',
               audience=ROLE_DIRECTOR, publication_id=publication.id)
    db.session.commit()

    logger.info('Publication %s updated by %s%s', publication.id, actor.email,
                ' (re-submitted)' if resubmitted else '', extra={'task': 'Edit Publication'})
    return publication


def remove_document(publication, actor):
    _check_can_modify(publication, actor)
    if not publication.document_path:
        raise NotFound('Publication has no document')

    documents.delete_document(publication.document_path)
    publication.document_path = None

    resubmitted = actor.role != ROLE_DIRECTOR and publication.approval_status == STATUS_REJECTED
    if resubmitted:
        publication.approval_status = STATUS_PENDING
        notify(f'Publication re-submitted by {actor.email}: {publication.title[:30]}',
               audience=ROLE_DIRECTOR, publication_id=publication.id)
    db.session.commit()

    logger.info('Document removed from publication %s by %s%s', publication.id, actor.email,
                ' (re-submitted)' if resubmitted else '', extra={'task': 'Edit Publication'})
    return publication


# ==================== Director review ====================

def review_publication(publication, reviewer, status, feedback=None):
    if reviewer.role != ROLE_DIRECTOR:
        raise PermissionDenied('Only directors can review publications')
    if status not in (STATUS_APPROVED, STATUS_REJECTED):
        raise ValidationError({'approval_status': f'Status must be {STATUS_APPROVED} or {STATUS_REJECTED}'})
    if not can_transition(publication.approval_status, status):
        raise InvalidTransitionError(
            f'Cannot change a {publication.approval_status} publication to {status}'
        )

    publication.approval_status = status
    publication.feedback = (feedback or '').strip() or None
    publication.reviewed_by = reviewer.id
    publication.reviewed_at = datetime.utcnow()

    db.session.add(DirectorActivity(
        director_id=reviewer.id,
        activity_type='Publication Approved' if status == STATUS_APPROVED else 'Publication Rejected',
        description=f'Publication "{publication.title[:20]}..." {status.lower()}',
    ))
    notify(f'Your publication "{publication.title[:30]}" was {status.lower()}',
           recipient_id=publication.owner_id, publication_id=publication.id)
    db.session.commit()

    logger.info('Publication %s %s by %s', publication.id, status.lower(), reviewer.email,
                extra={'task': 'Review Publication'})
    return publication


def recent_activity(director, limit=20):
    return (DirectorActivity.query
            .filter_by(director_id=director.id)
            .order_by(DirectorActivity.created_at.desc(), DirectorActivity.id.desc())
            .limit(limit)
            .all())


def approval_panel(page=1, limit=10, search='', status='', pub_type=''):
    """Filtered, paginated review queue with Pending records first."""
    page = max(page, 1)
    limit = min(max(limit, 1), 100)

    query = Publication.query.join(User, Publication.owner_id == User.id)
    if search:
        pattern = f'%{search}%'
        query = query.filter(or_(Publication.title.ilike(pattern), User.email.ilike(pattern)))
    if status:
        query = query.filter(Publication.approval_status == status)
    if pub_type:
        query = query.filter(Publication.type == pub_type)

    counts = dict(
        query.with_entities(Publication.approval_status, func.count(Publication.id))
        .group_by(Publication.approval_status)
        .all()
    )
    total = sum(counts.values())
    stats = {
        'total': total,
        'pending': counts.get(STATUS_PENDING, 0),
        'approved': counts.get(STATUS_APPROVED, 0),
        'rejected': counts.get(STATUS_REJECTED, 0),
    }

    pending_first = case((Publication.approval_status == STATUS_PENDING, 1), else_=2)
    publications = (query
                    .order_by(pending_first, Publication.created_at.desc(), Publication.id.desc())
                    .offset((page - 1) * limit)
                    .limit(limit)
                    .all())

    return {
        'publications': publications,
        'stats': stats,
        'pagination': {
            'page': page,
            'limit': limit,
            'total': total,
            'totalPages': math.ceil(total / limit) if total else 0,
        },
    }


# ==================== Public summary ====================

def publication_summary(now=None):
    """Approved publication counts per type over rolling windows."""
    now = now or datetime.utcnow()
    summary = {name: {t: 0 for t in PUBLICATION_TYPES} for name, _ in SUMMARY_WINDOWS}
    summary['overall'] = {t: 0 for t in PUBLICATION_TYPES}

    rows = (db.session.query(Publication.type, Publication.created_at)
            .filter(Publication.approval_status == STATUS_APPROVED)
            .filter(Publication.type.in_(PUBLICATION_TYPES))
            .all())
    for pub_type, created_at in rows:
        summary['overall'][pub_type] += 1
        for name, span in SUMMARY_WINDOWS:
            if created_at and created_at >= now - span:
                summary[name][pub_type] += 1

    summary['labels'] = list(PUBLICATION_TYPES)
    return summary
