from flask_wtf import FlaskForm
from wtforms import (
    StringField, PasswordField, TextAreaField, BooleanField,
    IntegerField, SelectField, SubmitField,
)
from wtforms.validators import DataRequired, Email, EqualTo, Length, NumberRange, Optional


class RegistrationForm(FlaskForm):
    username = StringField("Username", validators=[DataRequired(), Length(min=3, max=32)])
    email = StringField("Email", validators=[DataRequired(), Email()])
    password = PasswordField("Password", validators=[DataRequired(), Length(min=6)])
    confirm = PasswordField("Confirm Password", validators=[DataRequired(), EqualTo("password")])
    submit = SubmitField("Register")


class SettingsForm(FlaskForm):
    site_name = StringField("Site Name", validators=[DataRequired(), Length(max=100)])
    site_description = TextAreaField("Site Description", validators=[Optional(), Length(max=500)])
    maintenance_mode = BooleanField("Maintenance Mode")
    maintenance_message = TextAreaField("Maintenance Message", validators=[Optional(), Length(max=500)])
    default_user_role = SelectField("Default Role", choices=[("USER", "User"), ("ADMIN", "Admin")])
    registration_enabled = BooleanField("Registration Enabled")
    comments_enabled = BooleanField("Comments Enabled")
    max_login_attempts = IntegerField(
        "Max Login Attempts", validators=[DataRequired(), NumberRange(min=1, max=100)]
    )
    lockout_duration_minutes = IntegerField(
        "Lockout Duration (minutes)", validators=[DataRequired(), NumberRange(min=1, max=1440)]
    )
    submit = SubmitField("Save Settings")


class CreateUserForm(FlaskForm):
    username = StringField("Username", validators=[DataRequired(), Length(min=3, max=32)])
    email = StringField("Email", validators=[DataRequired(), Email()])
    password = PasswordField("Password", validators=[DataRequired(), Length(min=6)])
    role = SelectField("Role", choices=[("USER", "User"), ("ADMIN", "Admin")])
    submit = SubmitField("Create User")


class PostForm(FlaskForm):
    title = StringField("Title", validators=[DataRequired(), Length(max=200)])
    post_type = SelectField("Type", choices=[("TEXT", "Text"), ("LINK", "Link"), ("IMAGE", "Image")])
    content = TextAreaField("Content", validators=[Optional()])
    url = StringField("Link URL", validators=[Optional(), Length(max=500)])
    image_url = StringField("Image URL", validators=[Optional(), Length(max=500)])
    publish = BooleanField("Publish now", default=True)
    submit = SubmitField("Save")
