from app.core.models.form import Form

__all__ = [
    "Form",
]
