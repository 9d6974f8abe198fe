import os
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# Business calendar used for due dates and the overdue sweep
TIMEZONE = os.getenv("BILLING_TIMEZONE", "Asia/Kolkata")

CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "₹")

# Organization printed on every document unless the caller overrides it
COMPANY_NAME = os.getenv("COMPANY_NAME", "")
COMPANY_ADDRESS = os.getenv("COMPANY_ADDRESS", "")
COMPANY_CITY = os.getenv("COMPANY_CITY", "")
COMPANY_STATE = os.getenv("COMPANY_STATE", "")
COMPANY_ZIP_CODE = os.getenv("COMPANY_ZIP_CODE", "")
COMPANY_COUNTRY = os.getenv("COMPANY_COUNTRY", "India")
COMPANY_EMAIL = os.getenv("COMPANY_EMAIL", "")

TEMPLATE_DIR = os.getenv("TEMPLATE_DIR", os.path.join(BASE_DIR, "templates"))
OUTPUT_DIR = os.getenv("OUTPUT_DIR", os.path.join(BASE_DIR, "documents"))

POSTMARK_API_TOKEN = os.getenv("POSTMARK_API_TOKEN")
SENDER_EMAIL = os.getenv("SENDER_EMAIL")

TIMESHEET_SECTION_TITLE = os.getenv("TIMESHEET_SECTION_TITLE", "Timesheet Hours")

# Hour of day (in TIMEZONE) when the overdue sweep runs
OVERDUE_SWEEP_HOUR = int(os.getenv("OVERDUE_SWEEP_HOUR", "0"))
