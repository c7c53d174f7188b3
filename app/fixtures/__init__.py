"""Static fixtures for UroCare Pathways.

Contains:
- Message templates
"""

from app.fixtures.message_templates import (
    MESSAGE_TEMPLATES,
    PATHWAY_TRANSFER_GP_EMAIL,
    MessageTemplate,
    get_template,
)

__all__ = ["MESSAGE_TEMPLATES", "PATHWAY_TRANSFER_GP_EMAIL", "MessageTemplate", "get_template"]
