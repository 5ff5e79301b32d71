"""
Configuration for the hybrid job-resume matching engine.
Adjust weights, thresholds and pattern tables here.
"""

import os
import re
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

# Final score blend (must sum to 1.0)
SCORE_WEIGHTS = {
    "dense": 0.40,
    "sparse": 0.30,
    "section": 0.30,
}

# Section weights (must sum to 1.0)
SECTION_WEIGHTS = {
    "experience": 0.50,
    "skills": 0.30,
    "projects": 0.12,
    "eduLoc": 0.08,
}

# BM25 parameters
BM25_PARAMS = {
    "k1": 1.6,
    "b": 0.75,
}

TECH_TERM_IDF_BOOST = 1.5  # IDF multiplier for technical vocabulary
KEYWORD_IMPORTANCE_BOOST = 2.0  # Explanation ranking multiplier for technical terms

SKILLS_SECTION_BOOST = 1.1  # Capped at 1.0 after boosting

# Recency decay multipliers
RECENCY_DECAY = {
    "recent_years": 2,
    "moderate_years": 5,
    "recent": 1.0,
    "moderate": 0.7,
    "old": 0.4,
    "no_dates": 0.7,
    "no_experience": 0.4,
}

# Calibration
CALIBRATION = {
    "power_threshold": 0.1,
    "power": 0.9,
    "good_band": (0.4, 0.8),
    "good_band_boost": 1.05,
}

MUST_HAVE_PENALTY_THRESHOLD = 0.35  # Score ceiling when a must-have is missing

# Explanation sizes
EXPLANATION = {
    "max_keywords": 15,
    "max_sentences": 3,
    "min_sentence_length": 20,
    "max_sentence_chars": 150,
}

# Batch matching
MIN_SCORE_THRESHOLD = 0.05
MIN_JOB_TEXT_LENGTH = 10
MIN_CV_TEXT_LENGTH = 10

# Score labels, checked top-down
SCORE_THRESHOLDS = [
    (0.70, "Excellent"),
    (0.50, "Good"),
    (0.30, "Moderate"),
    (0.10, "Weak"),
]
LOWEST_SCORE_LABEL = "Very poor"

STOPWORDS = frozenset([
    "a", "an", "and", "are", "as", "at", "be", "by", "for", "from",
    "has", "he", "in", "is", "it", "its", "of", "on", "that", "the",
    "to", "was", "will", "with", "this", "but", "they", "have",
    "had", "what", "said", "each", "which", "their", "time", "if",
    "up", "out", "many", "then", "them", "these", "so", "some", "her",
    "would", "make", "like", "into", "him", "two", "more", "very",
    "after", "words", "long", "than", "first", "been", "call", "who",
])

# Technical synonyms used to widen the BM25 technical vocabulary
TECHNICAL_SYNONYMS = {
    "javascript": ["js", "ecmascript", "nodejs", "node.js"],
    "typescript": ["ts"],
    "react": ["reactjs", "react.js"],
    "angular": ["angularjs", "angular.js"],
    "vue": ["vuejs", "vue.js"],
    "python": ["py"],
    "machine learning": ["ml", "ai", "artificial intelligence"],
    "data science": ["data analytics", "data analysis"],
    "devops": ["dev ops", "sre", "site reliability"],
    "kubernetes": ["k8s"],
    "amazon web services": ["aws"],
    "google cloud platform": ["gcp", "google cloud"],
    "microsoft azure": ["azure"],
}

# Skill aliases accepted by the must-have checker
SKILL_SYNONYMS = {
    "javascript": ["js", "ecmascript", "node.js", "nodejs"],
    "typescript": ["ts"],
    "python": ["py"],
    "java": [],
    "react": ["reactjs", "react.js"],
    "angular": ["angularjs", "angular.js"],
    "vue": ["vuejs", "vue.js"],
    "node": ["node.js", "nodejs"],
    "aws": ["amazon web services"],
    "kubernetes": ["k8s", "kube"],
    "docker": [],
    "sql": ["database", "mysql", "postgresql"],
    "git": ["github", "gitlab"],
    "agile": ["scrum", "kanban"],
    "ci/cd": ["continuous integration", "continuous deployment", "devops"],
}

# Technical vocabulary: pattern family -> regex
TECH_TERM_PATTERNS = {
    "languages": re.compile(
        r"(?<!\w)(java|python|javascript|typescript|go|rust|c\+\+|c#|php|ruby|swift|kotlin|scala|r|matlab|perl|shell|bash|powershell)(?![\w+#])",
        re.IGNORECASE),
    "frameworks": re.compile(
        r"(?<!\w)(react|angular|vue|node|express|django|flask|spring|laravel|rails|asp\.net|\.net|jquery|bootstrap|tailwind)(?![\w+#])",
        re.IGNORECASE),
    "databases": re.compile(
        r"(?<!\w)(mysql|postgresql|mongodb|cassandra|redis|elasticsearch|oracle|sql|nosql|dynamodb|firebase)(?![\w+#])",
        re.IGNORECASE),
    "cloud": re.compile(
        r"(?<!\w)(aws|azure|gcp|docker|kubernetes|jenkins|gitlab|github|terraform|ansible|chef|puppet|ci/cd)(?![\w+#])",
        re.IGNORECASE),
    "tools": re.compile(
        r"(?<!\w)(git|svn|jira|confluence|slack|agile|scrum|kanban|devops|microservices|api|rest|graphql|soap)(?![\w+#])",
        re.IGNORECASE),
    "data_ml": re.compile(
        r"(?<!\w)(machine learning|ml|ai|artificial intelligence|data science|big data|hadoop|spark|tensorflow|pytorch|pandas|numpy)(?![\w+#])",
        re.IGNORECASE),
    "platforms": re.compile(
        r"(?<!\w)(frontend|backend|fullstack|full stack|web development|mobile development|ios|android|linux|windows|macos)(?![\w+#])",
        re.IGNORECASE),
}

CAPITALIZED_TERM_PATTERN = re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\b")

# Curated terms that become must-haves when near a requirement marker
MUST_HAVE_TECH_TERMS = [
    "javascript", "typescript", "python", "java", "c++", "c#", "go", "rust",
    "react", "angular", "vue", "node", "express", "django", "flask",
    "aws", "azure", "gcp", "docker", "kubernetes", "terraform",
    "sql", "mongodb", "postgresql", "mysql", "redis",
    "git", "ci/cd", "jenkins", "github actions",
    "agile", "scrum", "devops", "microservices",
    "machine learning", "ai", "data science", "tensorflow", "pytorch",
]

REQUIREMENT_MARKER = r"\b(?:must|required|essential)\b"

# Phrases whose trailing fragment lists required skills
REQUIRED_SKILL_PATTERNS = {
    "required_phrase": re.compile(
        r"(?:required|must have|must|essential|mandatory|necessary)\s+"
        r"(?:skills?|experience\s+with|knowledge\s+of|proficiency\s+in)\s*:?\s*([^.\n]+)",
        re.IGNORECASE),
    "must_know": re.compile(
        r"(?:must|should|need to)\s+(?:know|have experience with|be familiar with)\s+([^.\n]+)",
        re.IGNORECASE),
}

SKILL_FRAGMENT_SPLIT = re.compile(r"[,;|•\n]")
SENTENCE_LIKE_FRAGMENT = re.compile(r"^[A-Z][a-z]+ [a-z]+ [a-z]+")

# Language requirement: pattern family -> regex (group 1 = language, group 2 = level)
LANGUAGE_PATTERNS = {
    "proficiency": re.compile(r"(?i:fluent|native|proficient)\s+(?i:in)\s+([A-Z][a-z]+)"),
    "level": re.compile(
        r"([A-Z][a-z]+)\s+(?:(?i:level)\s+)?([A-C][1-2]|(?i:native|fluent|proficient|intermediate|beginner))\b"),
    "language_word": re.compile(r"([A-Z][a-z]+)\s+(?i:language|speaking)\b"),
    "speak": re.compile(r"\b(?i:speak|speaking|know|knowing)\s+([A-Z][a-z]+)"),
}

# Location requirement: explicit capture first, then work-mode literals
LOCATION_CAPTURE_PATTERN = re.compile(
    r"(?i:must be|required to be|need to be)\s+(?:(?i:located)\s+)?(?i:in|at)\s+([A-Z][A-Za-z ,]+)")
LOCATION_MODE_PATTERNS = {
    "on_site": re.compile(r"\b(?:on-site|onsite|on site|in-office|in office)\b", re.IGNORECASE),
    "remote": re.compile(r"\b(?:remote|work from home|wfh)\b", re.IGNORECASE),
    "hybrid": re.compile(r"\bhybrid\b", re.IGNORECASE),
}

# Clearance / permit requirements: pattern family -> regex
CLEARANCE_PATTERNS = {
    "clearance": re.compile(r"\b(?:security\s+)?clearance\b", re.IGNORECASE),
    "permit": re.compile(r"\b(?:work\s+)?permit\b", re.IGNORECASE),
    "authorization": re.compile(r"\b(?:visa|(?:work|employment)\s+(?:authorization|eligibility))\b", re.IGNORECASE),
    "citizenship": re.compile(r"\b(?:us\s+)?citizen\b", re.IGNORECASE),
    "green_card": re.compile(r"\bgreen\s+card\b", re.IGNORECASE),
}

# A heading is a family phrase, optionally joined to more words by &, / or "and"
HEADING_TAIL = r"(?:\s*[&/]\s*.+|\s+and\s+.+)?$"

# CV section headings (English + German): section -> patterns
SECTION_HEADING_PATTERNS = {
    "experience": [
        re.compile(r"^(experience|work experience|employment|berufserfahrung|erfahrung|work history|career|professional experience)" + HEADING_TAIL, re.IGNORECASE),
        re.compile(r"^(employment history|work|positions|jobs)" + HEADING_TAIL, re.IGNORECASE),
    ],
    "skills": [
        re.compile(r"^(skills|technical skills|competencies|qualifications|fähigkeiten|kompetenzen|expertise|proficiencies)" + HEADING_TAIL, re.IGNORECASE),
        re.compile(r"^(technologies|tools|software|programming languages|tech stack)" + HEADING_TAIL, re.IGNORECASE),
    ],
    "projects": [
        re.compile(r"^(projects|portfolio|notable projects|projekte|selected projects|key projects)" + HEADING_TAIL, re.IGNORECASE),
    ],
    "education": [
        re.compile(r"^(education|academic|bildung|ausbildung|qualifications|degrees|university|college)" + HEADING_TAIL, re.IGNORECASE),
        re.compile(r"^(certifications|certificates|zertifikate|training)" + HEADING_TAIL, re.IGNORECASE),
    ],
    "location": [
        re.compile(r"^(location|address|current location|wohnort|residence|based in)" + HEADING_TAIL, re.IGNORECASE),
    ],
}

MAX_HEADING_LENGTH = 50

# Paragraph routing when a CV has no recognisable headings (checked in order)
SECTION_CONTENT_PATTERNS = {
    "experience": re.compile(
        r"\b(worked at|employed at|position at|role at|developer|engineer|manager|analyst|consultant)\b",
        re.IGNORECASE),
    "skills": re.compile(
        r"\b(java|python|javascript|react|angular|vue|node|sql|aws|docker|kubernetes|git|agile|scrum)\b",
        re.IGNORECASE),
    "education": re.compile(
        r"\b(university|college|bachelor|master|phd|degree|graduated|gpa)\b",
        re.IGNORECASE),
}

# Experience date ranges: pattern family -> regex (last group = end of range)
DATE_RANGE_PATTERNS = {
    "year_range": re.compile(r"(\d{4})\s*[-–—]\s*(present|now|current|\d{4})", re.IGNORECASE),
    "month_year_present": re.compile(
        r"(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\s+(\d{4})\s*[-–—]\s*(present|now|current)",
        re.IGNORECASE),
    "year_to_year": re.compile(r"\b(\d{4})\s*[-–—]\s*(\d{4})\b"),
}

PRESENT_TOKENS = ("present", "now", "current")


def validate_weights(weights, name):
    """Raise ValueError unless the weights sum to 1.0."""
    total = sum(weights.values())
    if abs(total - 1.0) > 1e-9:
        raise ValueError(f"{name} must sum to 1.0, got {total:.4f}")
    return True


validate_weights(SCORE_WEIGHTS, "SCORE_WEIGHTS")
validate_weights(SECTION_WEIGHTS, "SECTION_WEIGHTS")


class Settings(BaseModel):
    model_config = ConfigDict(protected_namespaces=())
    embedding_timeout_seconds: float = 10.0
    max_concurrent_embeddings: int = 4
    max_match_workers: int = 8
    embedding_cache_size: int = 1000
    embedding_dim: int = 384


def get_settings() -> Settings:
    load_dotenv()
    load_dotenv(dotenv_path=Path(__file__).resolve().parent / ".env", override=False)
    return Settings(
        embedding_timeout_seconds=float(os.getenv("EMBEDDING_TIMEOUT_SECONDS", "10")),
        max_concurrent_embeddings=int(os.getenv("MAX_CONCURRENT_EMBEDDINGS", "4")),
        max_match_workers=int(os.getenv("MAX_MATCH_WORKERS", "8")),
        embedding_cache_size=int(os.getenv("EMBEDDING_CACHE_SIZE", "1000")),
        embedding_dim=int(os.getenv("EMBEDDING_DIM", "384")),
    )
