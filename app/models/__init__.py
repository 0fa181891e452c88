from app.models.soft_delete import SoftDeleteMixin  # noqa: F401
