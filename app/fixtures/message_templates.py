"""Message templates for staff correspondence.

Placeholders use ``{{name}}`` syntax. Optional sections (reason,
appointment, notes) are pre-rendered by the caller and passed in as a
single variable so the template itself stays free of conditionals.
"""

from dataclasses import dataclass

PATHWAY_TRANSFER_GP_EMAIL = "pathway_transfer_gp_email"


@dataclass(frozen=True)
class MessageTemplate:
    """A named subject/body template for one channel."""

    code: str
    subject: str
    body: str
    html_body: str | None = None

    def render(self, context: dict) -> tuple[str, str]:
        """Render template with context variables.

        Returns (subject, body) tuple.
        """
        subject = self.subject
        body = self.body

        for key, value in context.items():
            placeholder = f"{{{{{key}}}}}"
            subject = subject.replace(placeholder, str(value))
            body = body.replace(placeholder, str(value))

        return subject, body

    def render_html(self, context: dict) -> str | None:
        """Render HTML template with context variables."""
        if not self.html_body:
            return None

        html = self.html_body
        for key, value in context.items():
            placeholder = f"{{{{{key}}}}}"
            html = html.replace(placeholder, str(value))

        return html


MESSAGE_TEMPLATES: dict[str, MessageTemplate] = {
    # =========================================================================
    # Pathway transfer notice to the referring GP (Email)
    # =========================================================================
    PATHWAY_TRANSFER_GP_EMAIL: MessageTemplate(
        code=PATHWAY_TRANSFER_GP_EMAIL,
        subject="Patient Update: {{patient_name}} - Transferred to {{pathway}}",
        body="""Dear {{gp_name}},

We are writing to inform you that your referred patient has been transferred to a new care pathway.

Patient Name: {{patient_name}}
UPI: {{upi}}
New Care Pathway: {{pathway}}
{{reason_text}}{{appointment_text}}
You can view the patient's full details and progress in your GP portal.
{{notes_text}}
Best regards,
{{department_name}}

This is an automated notification. Please do not reply to this email.""",
        html_body="""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
    <div style="background-color: #0d9488; padding: 20px; text-align: center;">
        <h1 style="color: white; margin: 0;">Urology Patient Management</h1>
    </div>
    <div style="padding: 30px; background-color: #f9fafb;">
        <h2 style="color: #1f2937;">Patient Care Pathway Update</h2>
        <p>Dear {{gp_name_html}},</p>
        <p>We are writing to inform you that your referred patient has been transferred to a new care pathway.</p>
        <div style="background-color: white; border-left: 4px solid #0d9488; padding: 20px; margin: 20px 0;">
            <h3 style="color: #0d9488; margin-top: 0;">Patient Information</h3>
            <p><strong>Patient Name:</strong> {{patient_name_html}}</p>
            <p><strong>UPI:</strong> {{upi}}</p>
            <p><strong>New Care Pathway:</strong> {{pathway}}</p>
            {{reason_html}}
        </div>
        {{appointment_html}}
        <p>You can view the patient's full details and progress in your GP portal.</p>
        {{notes_html}}
        <p style="margin-top: 30px;">Best regards,<br><strong>{{department_name}}</strong></p>
    </div>
    <div style="background-color: #e5e7eb; padding: 15px; text-align: center; font-size: 12px; color: #6b7280;">
        <p style="margin: 0;">This is an automated notification. Please do not reply to this email.</p>
    </div>
</div>""",
    ),
}


def get_template(code: str) -> MessageTemplate:
    """Look up a template by code.

    Raises:
        KeyError: if no template has that code
    """
    return MESSAGE_TEMPLATES[code]
