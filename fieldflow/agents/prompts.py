"""AI gateway prompts. Every prompt asks for a single JSON object."""

TRANSCRIPT_EXTRACTION_PROMPT = """You are a virtual assistant processing work order requests for a field-service business.

Below is the transcript of a recorded customer request. Extract:
- customerDetails: who is asking and how to reach them
- jobDescription: the work to be done
- urgency: one of Low, Medium, High
- location: where the work must be performed

If any information is missing, use the string "unknown" for that field. Never omit a field.

Transcript:
{transcript}

Respond with only a JSON object with the keys customerDetails, jobDescription, urgency, location."""

JOB_ANALYSIS_PROMPT = """You are an assistant that analyzes field-service work orders and estimates what the job needs.

Customer details: {customer_details}
Job description: {job_description}
Urgency: {urgency}
Location: {location}

Estimate the parts needed, the job duration, the urgency level, the tools needed, and the man-hours needed.
Answer every field as descriptive text.

Respond with only a JSON object with the keys partList, jobDurationEstimate, urgencyLevel, toolsNeeded, manHoursNeeded."""

INVOICE_DRAFT_PROMPT = """You are an assistant drafting professional invoices for a field-service business.

Customer:
  Name: {name}
  Email: {email}
  Phone: {phone}
  Address: {address}

Job summary: {job_summary}

Parts and services (unit cost x quantity):
{part_lines}

Labor: {labor_estimate:.2f}
Tax rate: {tax_rate}

Write the invoice text: a header, the customer block, an itemized list, labor, subtotal, tax, and the total due.
Compute totalAmount as (sum of unit cost x quantity + labor) x (1 + tax rate).

Respond with only a JSON object with the keys invoiceText (string) and totalAmount (number)."""

COORDINATOR_PROMPT = """You are a central agent monitoring the subsystems of a field-service business.
Based on the status of each subsystem, decide on one proactive action that avoids manual intervention.

Job status: {job_status}
Parts order status: {parts_order_status}
Email status: {email_status}
Payment status: {payment_status}
Deadline status: {deadline_status}

Respond with only a JSON object with the keys actionTaken and reason."""
