from datetime import datetime
from sqlalchemy.orm import validates
from src.extensions import db

TEAMS = ('tech', 'sales', 'product', 'marketing')
QUESTION_TYPES = ('rating', 'text', 'choice')


class Employee(db.Model):
    """
    Represents an employee profile.
    The AI summary columns are only written by the employee summary generator.
    """
    __tablename__ = 'employees'

    id = db.Column(db.Integer, primary_key=True)

    # INDEX: Responses reference employees by email
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    name = db.Column(db.String(150), nullable=False)

    # Team is nullable: legacy rows without a team are skipped by team aggregation
    team = db.Column(db.String(20), nullable=True, index=True)

    gender = db.Column(db.String(20))
    date_of_birth = db.Column(db.Date)
    emergency_contact_name = db.Column(db.String(150))
    emergency_contact_phone = db.Column(db.String(50))
    last_updated = db.Column(db.DateTime, default=datetime.utcnow)

    # Cached AI summary
    ai_summary_text = db.Column(db.Text)
    ai_summary_updated_at = db.Column(db.DateTime)

    @validates('team')
    def validate_team(self, key, value):
        if value is not None and value not in TEAMS:
            raise ValueError(f"Invalid team '{value}'. Expected one of {', '.join(TEAMS)}")
        return value

    def __repr__(self):
        return f'<Employee {self.email}>'


class Survey(db.Model):
    """
    Admin-authored survey with an ordered list of questions.
    Deleting a survey deletes its responses.
    """
    __tablename__ = 'surveys'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False, default='')

    questions = db.relationship(
        'Question', backref='survey', order_by='Question.position',
        cascade='all, delete-orphan', lazy='selectin'
    )
    responses = db.relationship('Response', backref='survey', cascade='all, delete-orphan')

    def __repr__(self):
        return f'<Survey {self.title}>'


class Question(db.Model):
    __tablename__ = 'questions'

    id = db.Column(db.Integer, primary_key=True)
    survey_id = db.Column(db.Integer, db.ForeignKey('surveys.id', ondelete='CASCADE'), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)

    text = db.Column(db.Text, nullable=False)
    # rating (1-5) | text | choice
    type = db.Column(db.String(20), nullable=False, default='text')
    # Populated only for choice questions
    options = db.Column(db.JSON, default=list)

    @validates('type')
    def validate_type(self, key, value):
        if value not in QUESTION_TYPES:
            raise ValueError(f"Invalid question type '{value}'")
        return value

    def __repr__(self):
        return f'<Question {self.id} ({self.type})>'


class Response(db.Model):
    """
    One employee's answer set for one survey.
    `answers` maps the question id (as string) to the answer string.
    """
    __tablename__ = 'responses'

    id = db.Column(db.Integer, primary_key=True)

    # INDEX: Essential for grouping responses by employee
    email = db.Column(db.String(120), nullable=False, index=True)
    survey_id = db.Column(db.Integer, db.ForeignKey('surveys.id', ondelete='CASCADE'), nullable=False, index=True)

    answers = db.Column(db.JSON, nullable=False, default=dict)

    # INDEX: Quarter window statistics
    timestamp = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f'<Response {self.email} Survey:{self.survey_id}>'


class CultureScore(db.Model):
    """
    Append-only history of culture score reports.
    Reads always select the most recent row by last_updated.
    """
    __tablename__ = 'culture_scores'

    id = db.Column(db.Integer, primary_key=True)
    # INDEX: Freshness lookups and "latest" queries
    last_updated = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    company_overview = db.Column(db.JSON, nullable=False)
    team_metrics = db.Column(db.JSON, nullable=False, default=list)
    action_items = db.Column(db.JSON, nullable=False, default=list)
    ai_generated = db.Column(db.Boolean, nullable=False, default=True)

    def __repr__(self):
        return f'<CultureScore {self.last_updated}>'


class OrganizationSettings(db.Model):
    """
    Single-row organization settings (branding and API credentials).
    """
    __tablename__ = 'organization_settings'

    id = db.Column(db.Integer, primary_key=True)
    organization_name = db.Column(db.String(150), default='Culture App')
    primary_domain = db.Column(db.String(150), default='admin.com')
    logo_url = db.Column(db.String(255))
    logo_file = db.Column(db.String(255))
    openai_api_key = db.Column(db.String(255))
    last_updated = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<OrganizationSettings {self.organization_name}>'
