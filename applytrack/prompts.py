"""Prompt templates for the extraction oracle."""

EXTRACTION_PROMPT = """You are an expert at analyzing job application emails.

Analyze this email and determine:
1. Is this email about one of my job applications? (true/false)
2. If yes, extract: company name, job title, status, location

Email From: {sender}
Email Subject: {subject}
Email Body:
{body}

Return ONLY a complete JSON object with exactly these keys:
isJobEmail, company, jobTitle, status, location
No markdown, no code blocks, no commentary.

Rules for classification:
- isJobEmail: true if this is about a job application, interview, offer, or rejection
- isJobEmail: false if this is marketing, a newsletter, a job alert digest, spam, or unrelated

Rules for extraction (only if isJobEmail is true):
- company: The actual hiring company, NOT an ATS or job platform such as "Greenhouse", "Lever", "Workday", "Ashby", "iCIMS", "Jobvite", "LinkedIn" or "Indeed"
- jobTitle: The COMPLETE job title. Use "Not specified" if the email does not name one. Never leave it empty.
- status: Must be one of "Applied", "Interview", "Offer", "Rejected"
  * "Applied" = application received or confirmed
  * "Interview" = invitation to interview or to schedule a call
  * "Offer" = job offer
  * "Rejected" = application declined or not moving forward
- location: City/state if mentioned, "Remote" for remote work, otherwise "Not specified"

Example responses:
{{"isJobEmail":true,"company":"Google","jobTitle":"Software Engineer","status":"Applied","location":"Mountain View, CA"}}
{{"isJobEmail":true,"company":"Amazon","jobTitle":"Software Development Engineer II","status":"Interview","location":"Seattle, WA"}}
{{"isJobEmail":false,"company":"","jobTitle":"","status":"","location":""}}

JSON response:"""


def build_extraction_prompt(sender: str, subject: str, body: str, body_max_chars: int = 2000) -> str:
    """Fill the extraction prompt, truncating the body to bound cost."""
    if len(body) > body_max_chars:
        body = body[:body_max_chars] + "..."
    return EXTRACTION_PROMPT.format(sender=sender, subject=subject, body=body)
