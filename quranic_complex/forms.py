import json
from datetime import datetime, timezone
from flask import current_app
from flask_wtf import FlaskForm
from flask_wtf.file import FileField
from wtforms import (StringField, PasswordField, TextAreaField, SelectField, SubmitField, IntegerField,
                     BooleanField, DateField, Field)
from wtforms.validators import DataRequired, Email, Length, NumberRange, Optional, Regexp, ValidationError


def parse_iso_datetime(value):
    """Parse '2024-05-01' or a full ISO timestamp into a naive UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def submitted_data(form, exclude=()):
    """Field values the client actually sent, keyed by attribute name.

    For request forms this is every field present in the form data; for
    forms built from a plain dict it is every field that is not None.
    """
    data = {}
    for name, field in form._fields.items():
        if name in exclude or field.type in ('SubmitField', 'CSRFTokenField', 'FileField'):
            continue
        if field.raw_data:
            data[name] = field.data
        elif field.raw_data is None and field.data is not None:
            data[name] = field.data
    return data


def form_errors(form):
    return {name: list(errors) for name, errors in form.errors.items()}


class IsoDateTimeField(Field):
    """Accepts ISO dates or timestamps in form data and in plain dict data."""

    widget = StringField.widget

    def __init__(self, label=None, validators=None, message='Invalid date format', **kwargs):
        super().__init__(label, validators, **kwargs)
        self.message = message

    def _value(self):
        if self.raw_data:
            return ' '.join(self.raw_data)
        return self.data.isoformat() if self.data else ''

    def process_data(self, value):
        if value in (None, ''):
            self.data = None
            return
        try:
            self.data = parse_iso_datetime(value)
        except (TypeError, ValueError):
            self.data = None
            raise ValueError(self.message)

    def process_formdata(self, valuelist):
        if not valuelist or not valuelist[0]:
            self.data = None
            return
        try:
            self.data = parse_iso_datetime(valuelist[0])
        except ValueError:
            self.data = None
            raise ValueError(self.message)


class JSONListField(Field):
    """A JSON encoded list in form data (e.g. the translations array)."""

    widget = TextAreaField.widget

    def _value(self):
        if self.raw_data:
            return self.raw_data[0]
        return json.dumps(self.data or [], ensure_ascii=False)

    def process_data(self, value):
        self.data = value

    def process_formdata(self, valuelist):
        if not valuelist or not valuelist[0]:
            self.data = None
            return
        try:
            value = json.loads(valuelist[0])
        except ValueError:
            self.data = None
            raise ValueError('Invalid JSON')
        if not isinstance(value, list):
            self.data = None
            raise ValueError('Expected a JSON array')
        self.data = value


def check_translations(items, text_key, description_required=False):
    """Validate a list of {locale, <text_key>, description} dicts."""
    locales = current_app.config['LOCALES']
    seen = set()
    for index, item in enumerate(items or []):
        if not isinstance(item, dict):
            raise ValidationError(f'Translation {index} must be an object')
        locale = item.get('locale')
        if locale not in locales:
            raise ValidationError(f'Translation {index}: unsupported locale "{locale}"')
        if locale in seen:
            raise ValidationError(f'Duplicate translation for locale "{locale}"')
        seen.add(locale)
        text = item.get(text_key)
        if not isinstance(text, str) or not text.strip():
            raise ValidationError(f'Translation {index}: {text_key} is required')
        description = item.get('description')
        if description_required and (not isinstance(description, str) or not description.strip()):
            raise ValidationError(f'Translation {index}: description is required')
        if description is not None and not isinstance(description, str):
            raise ValidationError(f'Translation {index}: description must be a string')


class ApiForm(FlaskForm):
    class Meta:
        csrf = False


# Programs

class ProgramForm(ApiForm):
    slug = StringField('Slug', validators=[DataRequired(message='Slug is required'), Length(max=200)])
    title = StringField('Title', validators=[DataRequired(message='Title is required'), Length(max=255)])
    description = TextAreaField('Description', validators=[DataRequired(message='Description is required')])
    age_group = StringField('Age group', name='ageGroup', validators=[DataRequired(message='Age group is required'), Length(max=120)])
    schedule = StringField('Schedule', validators=[DataRequired(message='Schedule is required'), Length(max=255)])
    meta_title = StringField('Meta title', name='metaTitle', validators=[Optional(), Length(max=255)])
    meta_description = TextAreaField('Meta description', name='metaDescription', validators=[Optional()])
    keywords = StringField('Keywords', validators=[Optional(), Length(max=500)])
    image = FileField('Image')


class ProgramUpdateForm(ApiForm):
    slug = StringField('Slug', validators=[Optional(), Length(min=1, max=200)])
    title = StringField('Title', validators=[Optional(), Length(max=255)])
    description = TextAreaField('Description', validators=[Optional()])
    age_group = StringField('Age group', name='ageGroup', validators=[Optional(), Length(max=120)])
    schedule = StringField('Schedule', validators=[Optional(), Length(max=255)])
    meta_title = StringField('Meta title', name='metaTitle', validators=[Optional(), Length(max=255)])
    meta_description = TextAreaField('Meta description', name='metaDescription', validators=[Optional()])
    keywords = StringField('Keywords', validators=[Optional(), Length(max=500)])
    image = FileField('Image')
    remove_image = BooleanField('Remove image')


# News

class NewsForm(ApiForm):
    slug = StringField('Slug', validators=[DataRequired(message='Slug is required'), Length(max=200)])
    title = StringField('Title', validators=[DataRequired(message='Title is required'), Length(max=255)])
    content = TextAreaField('Content', validators=[DataRequired(message='Content is required')])
    excerpt = TextAreaField('Excerpt', validators=[DataRequired(message='Excerpt is required')])
    date = IsoDateTimeField('Date', validators=[Optional()])
    meta_title = StringField('Meta title', name='metaTitle', validators=[Optional(), Length(max=255)])
    meta_description = TextAreaField('Meta description', name='metaDescription', validators=[Optional()])
    keywords = StringField('Keywords', validators=[Optional(), Length(max=500)])
    image = FileField('Image')


class NewsUpdateForm(ApiForm):
    slug = StringField('Slug', validators=[Optional(), Length(min=1, max=200)])
    title = StringField('Title', validators=[Optional(), Length(max=255)])
    content = TextAreaField('Content', validators=[Optional()])
    excerpt = TextAreaField('Excerpt', validators=[Optional()])
    date = IsoDateTimeField('Date', validators=[Optional()])
    meta_title = StringField('Meta title', name='metaTitle', validators=[Optional(), Length(max=255)])
    meta_description = TextAreaField('Meta description', name='metaDescription', validators=[Optional()])
    keywords = StringField('Keywords', validators=[Optional(), Length(max=500)])
    image = FileField('Image')
    remove_image = BooleanField('Remove image')


# Gallery

class GalleryForm(ApiForm):
    category = StringField('Category', validators=[Optional(), Length(max=120)])
    translations = JSONListField('Translations')
    image = FileField('Image')

    def validate_translations(self, field):
        check_translations(field.data, 'title')


class CategoryForm(ApiForm):
    name = StringField('Name', validators=[DataRequired(message='Category name is required'), Length(max=120)])


# Events

class EventForm(ApiForm):
    date = IsoDateTimeField('Date', validators=[DataRequired(message='Date is required')])
    time = StringField('Time', validators=[DataRequired(message='Time is required'), Length(max=50)])
    location = StringField('Location', validators=[DataRequired(message='Location is required'), Length(max=255)])
    translations = JSONListField('Translations')
    image = FileField('Image')

    def validate_translations(self, field):
        check_translations(field.data, 'name', description_required=True)


# Contact

class ContactForm(FlaskForm):
    name = StringField('Name', validators=[DataRequired(message='Name is required'), Length(max=120)])
    email = StringField('Email', validators=[DataRequired(message='Email is required'), Email(message='Invalid email address')])
    phone = StringField('Phone', validators=[Optional(), Length(max=30)])
    subject = StringField('Subject', validators=[DataRequired(message='Subject is required'), Length(max=255)])
    message = TextAreaField('Message', validators=[DataRequired(message='Message is required')])
    submit = SubmitField('Send')


class ContactApiForm(ContactForm):
    class Meta:
        csrf = False


# Donations and payments

class DonationForm(FlaskForm):
    name = StringField('Name', validators=[DataRequired(message='Name is required'), Length(max=120)])
    email = StringField('Email', validators=[DataRequired(message='Email is required'), Email(message='Invalid email address')])
    phone = StringField('Phone', validators=[Optional(), Length(max=30)])
    amount = IntegerField('Amount', validators=[DataRequired(message='Amount is required'),
                                                NumberRange(min=1, message='Amount must be positive')])
    submit = SubmitField('Donate')


class DonationApiForm(DonationForm):
    class Meta:
        csrf = False


class ReceiptForm(FlaskForm):
    receipt = FileField('Receipt')
    submit = SubmitField('Upload receipt')


class PaymentForm(FlaskForm):
    image = FileField('Payment proof')
    description = TextAreaField('Description', validators=[Optional()])
    submit = SubmitField('Submit')


# Speech

class SpeechForm(ApiForm):
    text = TextAreaField('Text', validators=[DataRequired(message='Missing text in request body'), Length(max=5000)])
    voice = StringField('Voice', validators=[Optional(), Length(max=50)])


class TextToSpeechForm(FlaskForm):
    text = TextAreaField('Text', validators=[DataRequired(message='Please enter some text to speak.'), Length(max=5000)])
    submit = SubmitField('Speak')


# Users / auth

STUDY_LEVEL_CHOICES = [('BEGINNER', 'Beginner'), ('INTERMEDIATE', 'Intermediate'), ('ADVANCED', 'Advanced')]


class RegistrationForm(FlaskForm):
    name = StringField('Name', validators=[DataRequired(message='Name is required'), Length(max=120)])
    email = StringField('Email', validators=[DataRequired(message='Email is required'), Email(message='Invalid email address')])
    password = PasswordField('Password', validators=[DataRequired(message='Password is required'), Length(min=6, message='Password must be at least 6 characters')])
    phone = StringField('Phone', validators=[Optional(), Length(max=30)])
    date_of_birth = DateField('Date of birth', name='dateOfBirth', validators=[DataRequired(message='Date of birth is required')])
    national_code = StringField('National code', name='nationalCode', validators=[
        DataRequired(message='National code is required'),
        Regexp(r'^\d{10}$', message='National code must be 10 digits'),
    ])
    quranic_study_level = SelectField('Quranic study level', name='quranicStudyLevel', choices=STUDY_LEVEL_CHOICES,
                                      validators=[DataRequired(message='Study level is required')])
    national_card_picture = FileField('National card picture', name='nationalCardPicture')
    submit = SubmitField('Register')


class RegistrationApiForm(RegistrationForm):
    class Meta:
        csrf = False


class LoginForm(FlaskForm):
    email = StringField('Email', validators=[DataRequired(message='Email is required'), Email(message='Invalid email address')])
    password = PasswordField('Password', validators=[DataRequired(message='Password is required')])
    submit = SubmitField('Sign in')


class RequestLoginCodeForm(FlaskForm):
    email = StringField('Email', validators=[DataRequired(message='Email is required'), Email(message='Invalid email address')])
    submit = SubmitField('Send code')


class RequestLoginCodeApiForm(RequestLoginCodeForm):
    class Meta:
        csrf = False


class LoginCodeForm(FlaskForm):
    email = StringField('Email', validators=[DataRequired(message='Email is required'), Email(message='Invalid email address')])
    code = StringField('Code', validators=[DataRequired(message='Code is required'), Regexp(r'^\d{6}$', message='Code must be 6 digits')])
    submit = SubmitField('Sign in')


class UserUpdateForm(ApiForm):
    name = StringField('Name', validators=[Optional(), Length(max=120)])
    email = StringField('Email', validators=[Optional(), Email(message='Invalid email address')])
    phone = StringField('Phone', validators=[Optional(), Length(max=30)])
    role = SelectField('Role', choices=[('ADMIN', 'Admin'), ('STUDENT', 'Student'), ('USER', 'User')], validators=[Optional()])
    status = SelectField('Status', choices=[('PENDING', 'Pending'), ('APPROVED', 'Approved'), ('REJECTED', 'Rejected')], validators=[Optional()])
    national_code = StringField('National code', name='nationalCode', validators=[Optional(), Regexp(r'^\d{10}$', message='National code must be 10 digits')])
    date_of_birth = IsoDateTimeField('Date of birth', name='dateOfBirth', validators=[Optional()])
    quranic_study_level = SelectField('Quranic study level', name='quranicStudyLevel', choices=STUDY_LEVEL_CHOICES, validators=[Optional()])
    image = FileField('Image')
    national_card_picture = FileField('National card picture', name='nationalCardPicture')

    def validate_role(self, field):
        if field.raw_data and field.data not in dict(field.choices):
            raise ValidationError('Invalid role')


class ProfileForm(FlaskForm):
    name = StringField('Name', validators=[DataRequired(message='Name is required'), Length(max=120)])
    phone = StringField('Phone', validators=[Optional(), Length(max=30)])
    image = FileField('Profile image')
    submit = SubmitField('Save')


# Chat

class ChatRequestForm(ApiForm):
    chat_id = StringField('Chat id', name='id', validators=[DataRequired(message='Chat id is required'), Length(max=36)])
    message = TextAreaField('Message', validators=[DataRequired(message='Message is required')])
    selected_chat_model = SelectField('Model', name='selectedChatModel',
                                      choices=[('chat-model', 'Chat'), ('agent-model', 'Agent')],
                                      default='agent-model', validators=[Optional()])


# Admin

def locale_choices():
    return [(code, code.upper()) for code in current_app.config['LOCALES']]


class AdminMeta:
    """Turns CSRF back on for admin forms built on the API forms."""

    @property
    def csrf(self):
        return current_app.config.get('WTF_CSRF_ENABLED', True)


class AdminNewsForm(NewsForm):
    class Meta(AdminMeta):
        pass

    locale = SelectField('Locale', validators=[DataRequired()])
    submit = SubmitField('Save')


class AdminProgramForm(ProgramForm):
    class Meta(AdminMeta):
        pass

    locale = SelectField('Locale', validators=[DataRequired()])
    submit = SubmitField('Save')


class AdminGalleryForm(FlaskForm):
    category = StringField('Category', validators=[Optional(), Length(max=120)])
    title = StringField('Title', validators=[DataRequired(message='Title is required'), Length(max=255)])
    description = TextAreaField('Description', validators=[Optional()])
    locale = SelectField('Locale', validators=[DataRequired()])
    image = FileField('Image')
    submit = SubmitField('Save')


class AdminEventForm(FlaskForm):
    name = StringField('Name', validators=[DataRequired(message='Name is required'), Length(max=255)])
    description = TextAreaField('Description', validators=[DataRequired(message='Description is required')])
    date = IsoDateTimeField('Date', validators=[DataRequired(message='Date is required')])
    time = StringField('Time', validators=[DataRequired(message='Time is required'), Length(max=50)])
    location = StringField('Location', validators=[DataRequired(message='Location is required'), Length(max=255)])
    locale = SelectField('Locale', validators=[DataRequired()])
    image = FileField('Image')
    submit = SubmitField('Save')
