"""Application constants.

Contains provider input limits, search column sets, enrichment field labels,
and the fixed vocabularies used by the metadata extractors.
"""

# ---------------------------------------------------------------------------
# Provider input limits
# ---------------------------------------------------------------------------
EMBEDDING_INPUT_LIMIT: int = 25_000
EXTRACTION_INPUT_LIMIT: int = 15_000
EMBEDDING_PLACEHOLDER: str = "general"

# ---------------------------------------------------------------------------
# Candidate table
# ---------------------------------------------------------------------------
CANDIDATES_TABLE: str = "candidates"
USER_PROFILES_TABLE: str = "user_profiles"

# Columns returned to API callers (everything except the embedding vector)
CANDIDATE_COLUMNS: str = (
    "id, talent_id, persons_name, email, country, region, desired_rate, "
    "content, resume_text, candidate_bio, candidate_job_title, job_applying_to, "
    "job_roles, industry, english_accent, everything_field, resume_link, "
    "linkedin_link, voice_link, video_link, Skills_Technical, Experience_Role, "
    "Language_Proficiency, Communication_Skills, Industry_Background, "
    "Location_Timezone, Education_Certifications, Work_Style, metadata, "
    "candidate_status, blacklist, hired, created_at, updated_at, last_updated_by"
)

# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------
# Textual columns scanned by the keyword boost (mirrored in sql/search_candidates.sql)
SEARCH_KEYWORD_COLUMNS: tuple[str, ...] = (
    "candidate_bio",
    "candidate_job_title",
    "job_roles",
    "Experience_Role",
    "Skills_Technical",
    "industry",
    "Industry_Background",
    "Communication_Skills",
    "Education_Certifications",
    "Location_Timezone",
    "Language_Proficiency",
    "Work_Style",
    "email",
    "country",
    "region",
    "desired_rate",
    "english_accent",
)

SEARCH_RPC_NAME: str = "search_candidates"
SEARCH_VECTOR_WEIGHT: float = 1.0
SEARCH_KEYWORD_WEIGHT: float = 0.5

FILTER_OPTIONS_SCAN_LIMIT: int = 1000
FILTER_OPTIONS_CAPS: dict[str, int] = {
    "countries": 200,
    "statuses": 50,
    "accents": 50,
    "industries": 200,
}

# ---------------------------------------------------------------------------
# Enrichment
# ---------------------------------------------------------------------------
# Derived profile columns, in the order the extraction prompt returns them
PROFILE_FIELDS: tuple[str, ...] = (
    "Skills_Technical",
    "Experience_Role",
    "Language_Proficiency",
    "Communication_Skills",
    "Industry_Background",
    "Location_Timezone",
    "Education_Certifications",
    "Work_Style",
)

EMBEDDING_FIELD_LABELS: dict[str, str] = {
    "candidate_job_title": "Job Title",
    "job_roles": "Job Roles",
    "candidate_bio": "Bio",
    "Industry_Background": "Industry Background",
    "Skills_Technical": "Technical Skills",
    "Experience_Role": "Experience",
    "Communication_Skills": "Communication Skills",
    "Education_Certifications": "Education & Certifications",
    "Work_Style": "Work Style",
    "Language_Proficiency": "Language Proficiency",
    "industry": "Industry",
    "desired_rate": "Desired Rate",
    "country": "Country",
    "region": "Region",
    "english_accent": "English Proficiency",
    "Location_Timezone": "Location & Timezone",
}

BOILERPLATE_LABELS: tuple[str, ...] = (
    "Name", "Title", "Country", "Role", "Industry", "Bio", "Rate", "Status",
    "English", "Eligibility", "Email", "Phone", "Address", "Linkedin",
)
REFINED_MIN_LINE_LENGTH: int = 20
REFINED_MAX_LINES: int = 20

# ---------------------------------------------------------------------------
# Metadata extraction vocabularies
# ---------------------------------------------------------------------------
MAX_SKILLS: int = 20
MAX_CERTIFICATIONS: int = 10
MAX_INDUSTRIES: int = 10
MAX_YEARS_OF_EXPERIENCE: int = 50

TECH_TOOLS: tuple[str, ...] = (
    "Excel", "PowerPoint", "Word", "Outlook", "Power BI", "Tableau", "SAP",
    "Oracle", "Salesforce", "QuickBooks", "SQL", "Python", "R", "SPSS",
    "Alteryx", "SAS", "Adobe", "Photoshop", "AutoCAD", "Revit", "MATLAB",
    "JavaScript", "HTML", "CSS", "CRM", "ERP", "ServiceTitan", "Jira",
    "Trello", "Slack", "Teams", "Zoom",
)

COMMON_CERTIFICATIONS: tuple[str, ...] = (
    "PMP", "CPA", "CFA", "CISSP", "CISA", "AWS", "Azure", "Google Cloud",
    "Salesforce", "Microsoft", "Oracle", "Cisco", "CompTIA", "ITIL",
    "Scrum Master", "Agile", "Six Sigma", "Lean", "Project Management",
)

COMMON_INDUSTRIES: tuple[str, ...] = (
    "Technology", "Finance", "Healthcare", "Education", "Manufacturing",
    "Retail", "Consulting", "Real Estate", "Construction", "Logistics",
    "Marketing", "Sales", "HR", "Accounting", "Legal", "Media",
    "Telecommunications", "Automotive", "Aerospace", "Energy",
)

AVAILABILITY_TERMS: tuple[str, ...] = (
    "immediate", "immediately", "asap", "available now", "ready to start",
    "2 weeks notice", "one month notice", "flexible", "negotiable",
)

# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------
PREVIEW_EXAMPLE_LIMIT: int = 5
# Seconds per 1000 records: source fetch + transform + enrichment
PREVIEW_SECONDS_PER_THOUSAND: int = 30 + 10 + 60

# PostgREST returns at most 1000 rows per request
DATASTORE_PAGE_SIZE: int = 1000
