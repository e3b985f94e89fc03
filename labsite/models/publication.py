"""Publication model and its approval lifecycle constants."""
from datetime import datetime
from labsite.extensions import db

PUBLICATION_TYPES = [
    'Conference Paper',
    'Journal Paper',
    'Book/Chapter',
    'Patent',
    'Project',
]

STATUS_PENDING = 'Pending'
STATUS_APPROVED = 'Approved'
STATUS_REJECTED = 'Rejected'
APPROVAL_STATUSES = [STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED]

# Re-submission after an edit is the only way back out of Rejected.
ALLOWED_TRANSITIONS = {
    STATUS_PENDING: {STATUS_APPROVED, STATUS_REJECTED},
    STATUS_REJECTED: {STATUS_PENDING},
    STATUS_APPROVED: set(),
}


def can_transition(current, new):
    return new in ALLOWED_TRANSITIONS.get(current, set())


class Publication(db.Model):
    __tablename__ = 'publications'
    
    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    
    type = db.Column(db.String(40), nullable=False)
    title = db.Column(db.String(500), nullable=False)
    publishing_year = db.Column(db.Integer, nullable=False)
    authors = db.Column(db.JSON, nullable=False)  # Ordered list of author names
    published_date = db.Column(db.Date)  # Write-once for the owner
    link = db.Column(db.String(500), nullable=False)
    document_path = db.Column(db.String(300))
    
    approval_status = db.Column(db.String(20), default=STATUS_PENDING, nullable=False)
    feedback = db.Column(db.Text)
    reviewed_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))
    reviewed_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = db.relationship('User', foreign_keys=[owner_id], backref='publications')
    reviewer = db.relationship('User', foreign_keys=[reviewed_by])

    @property
    def is_approved(self):
        return self.approval_status == STATUS_APPROVED

    def to_dict(self, public=False):
        data = {
            'id': self.id,
            'owner_id': self.owner_id,
            'owner_email': self.owner.email if self.owner else None,
            'type': self.type,
            'title': self.title,
            'publishing_year': self.publishing_year,
            'authors': list(self.authors or []),
            'published_date': self.published_date.isoformat() if self.published_date else None,
            'link': self.link,
            'document_path': self.document_path,
            'approval_status': self.approval_status,
            'feedback': self.feedback,
            'reviewed_by': self.reviewed_by,
            'reviewed_at': self.reviewed_at.isoformat() if self.reviewed_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
        if public:
            for key in ('owner_email', 'feedback', 'reviewed_by'):
                data.pop(key)
        return data
