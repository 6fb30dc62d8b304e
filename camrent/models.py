import uuid
from datetime import datetime, timezone

from flask_login import UserMixin

from camrent import db, login_manager

CAMERA_CATEGORIES = ('DSLR', 'Mirrorless', 'Cinema Camera', 'Medium Format', 'Compact')
ACCESSORY_CATEGORIES = (
    'Lens', 'Stabilizer', 'Lighting', 'Audio',
    'Support', 'Monitoring', 'Storage', 'Power',
)
CATEGORIES = CAMERA_CATEGORIES + ACCESSORY_CATEGORIES

ORDER_STATUSES = ('pending', 'confirmed', 'completed', 'cancelled')
ROLES = ('customer', 'staff', 'admin')


def _now() -> datetime:
    """Naive UTC, matching how rent and return dates are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _uuid() -> str:
    return str(uuid.uuid4())


class Equipment(db.Model):
    __tablename__ = 'equipments'
    id          = db.Column(db.String(36), primary_key=True, default=_uuid)
    name        = db.Column(db.String(200), nullable=False)
    category    = db.Column(db.String(64), nullable=False, index=True)
    image_url   = db.Column(db.String(500), nullable=False, default='')
    description = db.Column(db.Text, nullable=False, default='')
    rate_12hr   = db.Column(db.Float, nullable=False, default=0.0)
    rate_24hr   = db.Column(db.Float, nullable=False, default=0.0)
    available   = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at  = db.Column(db.DateTime, default=_now)

    orders = db.relationship('Order', backref='equipment', lazy=True)

    @property
    def kind(self):
        """'camera' or 'accessory', derived from the category."""
        return 'camera' if self.category in CAMERA_CATEGORIES else 'accessory'

    def rate_for(self, duration: str) -> float:
        return self.rate_12hr if duration == '12h' else self.rate_24hr

    def to_dict(self) -> dict:
        return {
            'id'         : self.id,
            'name'       : self.name,
            'category'   : self.category,
            'kind'       : self.kind,
            'image_url'  : self.image_url,
            'description': self.description,
            'rate_12hr'  : self.rate_12hr,
            'rate_24hr'  : self.rate_24hr,
            'available'  : self.available,
            'created_at' : self.created_at.isoformat() if self.created_at else None,
        }


class Order(db.Model):
    __tablename__ = 'orders'
    id              = db.Column(db.String(36), primary_key=True, default=_uuid)
    customer_name   = db.Column(db.String(200), nullable=False)
    customer_email  = db.Column(db.String(200), nullable=False, index=True)
    customer_phone  = db.Column(db.String(50), nullable=False, default='')
    equipment_id    = db.Column(db.String(36), db.ForeignKey('equipments.id'), nullable=True)
    duration        = db.Column(db.String(8), nullable=False)         # '12hr' or '24hr'
    priced_duration = db.Column(db.String(8), nullable=True)          # cart line's '12h' / '24h'
    rent_date       = db.Column(db.DateTime, nullable=False)
    return_date     = db.Column(db.DateTime, nullable=False)
    total_cost      = db.Column(db.Float, nullable=False, default=0.0)
    payment_type    = db.Column(db.String(16), nullable=False, default='advance')
    payment_mode    = db.Column(db.String(16), nullable=False, default='cash')
    checkout_ref    = db.Column(db.String(36), nullable=True, index=True)
    status          = db.Column(db.String(16), nullable=False, default='pending', index=True)
    handled_by      = db.Column(db.String(36), db.ForeignKey('user_profiles.id'), nullable=True)
    created_at      = db.Column(db.DateTime, default=_now)

    def to_dict(self) -> dict:
        eq = self.equipment
        return {
            'id'             : self.id,
            'customer_name'  : self.customer_name,
            'customer_email' : self.customer_email,
            'customer_phone' : self.customer_phone,
            'equipment_id'   : self.equipment_id,
            'equipments'     : {'name': eq.name, 'image_url': eq.image_url} if eq else None,
            'duration'       : self.duration,
            'priced_duration': self.priced_duration,
            'rent_date'      : self.rent_date.isoformat(),
            'return_date'    : self.return_date.isoformat(),
            'total_cost'     : self.total_cost,
            'payment_type'   : self.payment_type,
            'payment_mode'   : self.payment_mode,
            'checkout_ref'   : self.checkout_ref,
            'status'         : self.status,
            'handled_by'     : self.handled_by,
            'created_at'     : self.created_at.isoformat() if self.created_at else None,
        }


class Notification(db.Model):
    """Admin inbox entry. Persisted under the legacy ``suggestions`` name."""
    __tablename__ = 'suggestions'
    id         = db.Column(db.String(36), primary_key=True, default=_uuid)
    body       = db.Column('suggestion_text', db.Text, nullable=False)
    author     = db.Column('suggested_by', db.String(200), nullable=False)
    created_at = db.Column(db.DateTime, default=_now, index=True)

    def to_dict(self) -> dict:
        return {
            'id'             : self.id,
            'suggestion_text': self.body,
            'suggested_by'   : self.author,
            'created_at'     : self.created_at.isoformat() if self.created_at else None,
        }


class UserProfile(db.Model, UserMixin):
    __tablename__ = 'user_profiles'
    id         = db.Column(db.String(36), primary_key=True)  # auth provider user id
    name       = db.Column(db.String(200), nullable=False)
    email      = db.Column(db.String(200), nullable=False, index=True)
    role       = db.Column(db.String(16), nullable=False, default='customer')
    created_at = db.Column(db.DateTime, default=_now)

    def to_dict(self) -> dict:
        return {
            'id'   : self.id,
            'name' : self.name,
            'email': self.email,
            'role' : self.role,
        }


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(UserProfile, user_id)
