import os
import re
import math
import logging
from datetime import datetime
from functools import wraps
from typing import List, Dict, Optional
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {'pdf', 'doc', 'docx', 'txt', 'jpg', 'jpeg', 'png'}
CONTACT_HIDDEN_MESSAGE = 'Contact information will be revealed after scheduling an interview'

def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (Python's round() is banker's rounding)"""
    return int(math.floor(value + 0.5))

def validate_email(email: str) -> bool:
    """Validate email address format"""
    if not email:
        return False

    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return bool(re.match(pattern, email))

def validate_phone(phone: str) -> bool:
    """Validate phone number format"""
    if not phone:
        return False

    # Remove spaces, dashes, parentheses
    clean_phone = re.sub(r'[\s\-\(\)]', '', phone)

    pattern = r'^\+?[\d]{10,15}$'
    return bool(re.match(pattern, clean_phone))

def clean_filename(filename: str) -> str:
    """Clean and secure filename"""
    if not filename:
        return "unnamed_file"

    filename = os.path.basename(filename)
    secure_name = secure_filename(filename)

    # secure_filename drops everything for names like "../../"
    if not secure_name:
        ext = os.path.splitext(filename)[1]
        secure_name = f"file_{datetime.now().strftime('%Y%m%d_%H%M%S')}{ext}"

    return secure_name

def allowed_file(filename: str) -> bool:
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS

def extract_skills_from_text(text: str) -> List[str]:
    """Extract potential skills from text using simple keyword matching"""
    if not text:
        return []

    skill_patterns = [
        # Programming languages
        r'\b(?:Python|Java|JavaScript|TypeScript|C\+\+|C#|PHP|Ruby|Go|Rust|Swift|Kotlin)\b',

        # Web technologies
        r'\b(?:HTML|CSS|React|Angular|Vue|Node\.js|Django|Flask|Spring|Laravel|Flutter)\b',

        # Databases
        r'\b(?:MySQL|PostgreSQL|MongoDB|SQLite|Oracle|SQL Server|Redis)\b',

        # Cloud and DevOps
        r'\b(?:AWS|Azure|Google Cloud|Docker|Kubernetes|Jenkins|Git|GitHub|GitLab)\b',

        # Data Science
        r'\b(?:Machine Learning|Deep Learning|TensorFlow|PyTorch|Pandas|NumPy|Scikit-learn)\b',

        r'\b(?:Linux|Agile|Scrum|REST API|GraphQL|Microservices)\b',

        # Soft skills
        r'\b(?:Leadership|Communication|Project Management|Team Lead|Problem Solving)\b'
    ]

    skills = []
    seen = set()
    for pattern in skill_patterns:
        for match in re.findall(pattern, text, re.IGNORECASE):
            if match.lower() not in seen:
                seen.add(match.lower())
                skills.append(match)

    return skills

def extract_years_from_duration(duration: str) -> int:
    """Extract years from duration string"""
    if not duration:
        return 0

    # Look for patterns like "2020-2022", "2020 - 2022"
    year_pattern = r'(\d{4})\s*[-–]\s*(\d{4})'
    match = re.search(year_pattern, duration)

    if match:
        start_year = int(match.group(1))
        end_year = int(match.group(2))
        return max(0, end_year - start_year)

    # Single year with "present", "current", etc.
    current_pattern = r'(\d{4})\s*[-–]\s*(?:present|current|now)'
    match = re.search(current_pattern, duration, re.IGNORECASE)

    if match:
        start_year = int(match.group(1))
        return max(0, datetime.now().year - start_year)

    return 0

def calculate_experience_years(work_experience: List[Dict]) -> int:
    """Calculate total years of experience from work history"""
    if not work_experience:
        return 0

    return sum(extract_years_from_duration(job.get('duration', '')) for job in work_experience)

def truncate_text(text: str, max_length: int = 200) -> str:
    """Truncate text to specified length with ellipsis"""
    if not text or len(text) <= max_length:
        return text

    return text[:max_length - 3] + "..."

def sanitize_html(text: str) -> str:
    """Strip tags and collapse whitespace in user supplied text"""
    if not text:
        return ""

    clean_text = re.sub(r'<[^>]+>', '', text)
    return re.sub(r'\s+', ' ', clean_text).strip()

def parse_salary_range(salary_text: str) -> tuple[Optional[int], Optional[int]]:
    """Parse salary range from text like "50k-70k" or "€60,000 - €75,000" """
    if not salary_text:
        return None, None

    # Remove currency symbols and common words
    clean_text = re.sub(r'[$£€,]', '', str(salary_text))
    clean_text = re.sub(r'\b(?:per|year|annual|salary|range|eur|usd|gbp)\b', '', clean_text, flags=re.IGNORECASE)

    range_pattern = r'(\d+)(k)?\s*[-–]\s*(\d+)(k)?'
    match = re.search(range_pattern, clean_text, re.IGNORECASE)

    if match:
        min_val = int(match.group(1))
        max_val = int(match.group(3))

        # "50-70k" means both ends are in thousands
        if match.group(2) or match.group(4):
            min_val *= 1000
            max_val *= 1000

        return min_val, max_val

    single_pattern = r'(\d+)(k)?'
    match = re.search(single_pattern, clean_text, re.IGNORECASE)

    if match:
        val = int(match.group(1))
        if match.group(2):
            val *= 1000

        return val, val

    return None, None

def format_salary_range(salary_min: Optional[int], salary_max: Optional[int], currency: str = 'EUR') -> str:
    symbol = {'EUR': '€', 'USD': '$', 'GBP': '£'}.get((currency or '').upper(), '')
    if salary_min and salary_max and salary_min != salary_max:
        return f"{symbol}{salary_min:,} - {symbol}{salary_max:,}"
    value = salary_min or salary_max
    if value:
        return f"{symbol}{value:,}"
    return 'Negotiable'

# Contact masking

def mask_phone(phone: Optional[str]) -> str:
    """Hide all but the last two digits of a phone number"""
    if not phone:
        return 'Not provided'

    digits = re.sub(r'\D', '', phone)
    if len(digits) < 4:
        return 'xxx'

    last_two = digits[-2:]
    if len(digits) == 10:
        return f"xxx-xxx-{last_two}"
    if len(digits) == 11:
        return f"x-xxx-xxx-{last_two}"

    return 'x' * (len(digits) - 2) + last_two

def mask_location(location: Optional[str]) -> str:
    """Reduce a location to city/country level"""
    if not location:
        return 'Location not specified'

    if ',' in location or any(word in location for word in ('Street', 'Avenue', 'Road')):
        parts = [part.strip() for part in location.split(',')]
        if len(parts) >= 2:
            return f"{parts[-2]}, {parts[-1]}"

    if len(location) > 20:
        return location[:15].rstrip() + '...'

    return location

def mask_email(email: Optional[str]) -> str:
    return 'xxx@xxx.com'

def should_mask_contact(interview_statuses: List[str]) -> bool:
    """Contact details stay hidden until an interview has been booked; cancelled ones don't count"""
    return all(status == 'cancelled' for status in interview_statuses or [])

def masked_contact_info(phone: Optional[str], email: Optional[str], location: Optional[str],
                        interview_statuses: List[str]) -> Dict:
    masked = should_mask_contact(interview_statuses)
    if masked:
        return {
            'phone': mask_phone(phone),
            'email': mask_email(email),
            'location': mask_location(location),
            'is_masked': True,
            'message': CONTACT_HIDDEN_MESSAGE,
        }
    return {
        'phone': phone,
        'email': email,
        'location': location,
        'is_masked': False,
        'message': None,
    }

def log_processing_time(func):
    """Decorator to log function processing time"""
    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = datetime.now()

        try:
            result = func(*args, **kwargs)
            processing_time = (datetime.now() - start_time).total_seconds()

            logger.info(f"{func.__name__} completed in {processing_time:.2f} seconds")
            return result

        except Exception as e:
            processing_time = (datetime.now() - start_time).total_seconds()

            logger.error(f"{func.__name__} failed after {processing_time:.2f} seconds: {e}")
            raise

    return wrapper

# Validation helpers
def validate_registration_data(data: Dict) -> List[str]:
    """Validate sign-up data and return list of errors"""
    errors = []

    if not data.get('email'):
        errors.append("Email is required")
    elif not validate_email(data['email']):
        errors.append("Invalid email format")

    password = data.get('password') or ''
    if len(password) < 6:
        errors.append("Password must be at least 6 characters")

    if data.get('role') not in (None, 'candidate', 'employer'):
        errors.append("Role must be candidate or employer")

    phone = data.get('phone')
    if phone and not validate_phone(phone):
        errors.append("Invalid phone number format")

    return errors

def validate_job_data(data: Dict) -> List[str]:
    """Validate job data and return list of errors"""
    errors = []

    if not data.get('title'):
        errors.append("Job title is required")

    if not data.get('description'):
        errors.append("Job description is required")

    if data.get('experience_level') and data['experience_level'] not in ('entry', 'mid', 'senior', 'lead', 'executive'):
        errors.append("Invalid experience level")

    if data.get('salary_type') and data['salary_type'] not in ('range', 'fixed', 'negotiable'):
        errors.append("Salary type must be range, fixed or negotiable")

    salary_min = data.get('salary_min')
    salary_max = data.get('salary_max')

    if salary_min and salary_max and int(salary_min) > int(salary_max):
        errors.append("Minimum salary cannot be greater than maximum salary")

    skills = data.get('skills_required')
    if skills is not None and not isinstance(skills, list):
        errors.append("skills_required must be a list")

    return errors

def _is_whole_number(value) -> bool:
    if isinstance(value, bool):
        return False
    try:
        return float(value) == int(float(value))
    except (TypeError, ValueError):
        return False

def validate_profile_data(data: Dict) -> List[str]:
    """Validate candidate profile updates and return list of errors"""
    errors = []

    experience = data.get('experience_years')
    if experience is not None:
        if not _is_whole_number(experience):
            errors.append("Experience years must be a whole number")
        elif not 0 <= int(float(experience)) <= 60:
            errors.append("Experience years must be between 0 and 60")

    salary_min = data.get('target_salary_min')
    salary_max = data.get('target_salary_max')
    for label, value in (('Minimum', salary_min), ('Maximum', salary_max)):
        if value is not None and (not _is_whole_number(value) or int(float(value)) < 0):
            errors.append(f"{label} target salary must be a positive number")

    if (_is_whole_number(salary_min) and _is_whole_number(salary_max)
            and int(float(salary_min)) > int(float(salary_max))):
        errors.append("Minimum salary cannot be greater than maximum salary")

    currency = data.get('target_salary_currency')
    if currency is not None and not re.fullmatch(r'[A-Za-z]{3}', str(currency)):
        errors.append("Currency must be a 3-letter code")

    for field in ('skills', 'languages', 'preferred_locations', 'preferred_job_types'):
        if data.get(field) is not None and not isinstance(data[field], list):
            errors.append(f"{field} must be a list")

    if data.get('willing_to_relocate') is not None and not isinstance(data['willing_to_relocate'], bool):
        errors.append("willing_to_relocate must be true or false")

    phone = data.get('phone')
    if phone and not validate_phone(phone):
        errors.append("Invalid phone number format")

    return errors
