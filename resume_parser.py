import os
import re
import json
import logging
from typing import Dict, Optional

import PyPDF2
import docx
from flask import current_app
from openai import OpenAI

from utils import extract_skills_from_text, calculate_experience_years

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are an expert CV/Resume parser. Extract the following information from the resume text and return it as a JSON object:

{
  "name": "Full name of the candidate",
  "email": "Email address",
  "phone": "Phone number",
  "location": "City, Country",
  "headline": "Current or most recent job title",
  "summary": "Brief professional summary (2-3 sentences)",
  "skills": ["List of technical and professional skills"],
  "languages": ["Spoken languages"],
  "experience_years": "Total years of experience (number only)",
  "work_experience": [
    {
      "title": "Job title",
      "company": "Company name",
      "duration": "Duration (e.g., 2020-2022)"
    }
  ]
}

If information is not available, use null or empty arrays."""


def _empty_result() -> Dict:
    return {
        'name': None,
        'email': None,
        'phone': None,
        'location': None,
        'headline': None,
        'summary': None,
        'skills': [],
        'languages': [],
        'experience_years': 0,
        'work_experience': [],
    }


def extract_text_from_pdf(filepath):
    """Extract text from PDF file"""
    try:
        with open(filepath, 'rb') as file:
            pdf_reader = PyPDF2.PdfReader(file)
            pages = [page.extract_text() or '' for page in pdf_reader.pages]
            return "\n".join(pages).strip()

    except Exception as e:
        logger.error(f"Error extracting text from PDF {filepath}: {e}")
        return ""


def extract_text_from_docx(filepath):
    """Extract text from DOCX file"""
    try:
        document = docx.Document(filepath)
        return "\n".join(paragraph.text for paragraph in document.paragraphs).strip()

    except Exception as e:
        logger.error(f"Error extracting text from DOCX {filepath}: {e}")
        return ""


def extract_text_from_txt(filepath):
    try:
        with open(filepath, 'r', encoding='utf-8') as file:
            return file.read().strip()
    except UnicodeDecodeError:
        with open(filepath, 'r', encoding='latin-1') as file:
            return file.read().strip()


def extract_text_from_file(filepath):
    """Extract text from a resume in any supported format"""
    if not os.path.exists(filepath):
        logger.error(f"File not found: {filepath}")
        return ""

    file_extension = os.path.splitext(filepath)[1].lower()

    if file_extension == '.pdf':
        return extract_text_from_pdf(filepath)
    elif file_extension == '.docx':
        return extract_text_from_docx(filepath)
    elif file_extension in ('.txt', '.doc'):  # .doc read as plain text
        return extract_text_from_txt(filepath)

    logger.warning(f"Unsupported resume format: {file_extension}")
    return ""


def _openai_client() -> Optional[OpenAI]:
    api_key = current_app.config.get('OPENAI_API_KEY')
    if not api_key:
        return None
    return OpenAI(api_key=api_key)


def parse_resume_with_ai(resume_text: str) -> Optional[Dict]:
    """Structured parse through the chat API, None when unavailable or failed"""
    client = _openai_client()
    if client is None:
        return None

    try:
        response = client.chat.completions.create(
            model=current_app.config.get('OPENAI_MODEL', 'gpt-5'),
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": f"Please parse this resume:\n\n{resume_text}"}
            ],
            response_format={"type": "json_object"},
            max_completion_tokens=2000
        )
        parsed = json.loads(response.choices[0].message.content or '{}')

    except Exception as e:
        logger.error(f"Error parsing resume with AI: {e}")
        return None

    result = _empty_result()
    result.update({k: v for k, v in parsed.items() if k in result})

    for key in ('skills', 'languages', 'work_experience'):
        if not isinstance(result.get(key), list):
            result[key] = []

    exp_years = result.get('experience_years')
    if isinstance(exp_years, str):
        exp_match = re.search(r'\d+', exp_years)
        result['experience_years'] = int(exp_match.group()) if exp_match else 0
    elif isinstance(exp_years, float):
        result['experience_years'] = int(exp_years)
    elif not isinstance(exp_years, int):
        result['experience_years'] = 0

    return result


def extract_basic_info_regex(text: str) -> Dict:
    """Contact details via regex, used when AI parsing is unavailable"""
    info = {}

    email_match = re.search(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b', text)
    info['email'] = email_match.group() if email_match else None

    phone_match = re.search(r'\+?\d[\d\s\-\(\)]{8,}\d', text)
    info['phone'] = phone_match.group().strip() if phone_match else None

    # First short line without digits is usually the name
    info['name'] = None
    for line in text.split('\n')[:5]:
        line = line.strip()
        if line and not any(char.isdigit() for char in line) and '@' not in line and 2 <= len(line.split()) <= 4:
            info['name'] = line
            break

    return info


def parse_resume_text(text: str) -> Dict:
    result = parse_resume_with_ai(text)
    if result is None:
        result = _empty_result()
        result['skills'] = extract_skills_from_text(text)

    basic_info = extract_basic_info_regex(text)
    for key in ('email', 'name', 'phone'):
        if not result.get(key) and basic_info.get(key):
            result[key] = basic_info[key]

    if not result.get('experience_years'):
        result['experience_years'] = calculate_experience_years(result.get('work_experience') or [])
        if not result['experience_years']:
            years_match = re.search(r'(\d{1,2})\+?\s+years?\s+(?:of\s+)?experience', text, re.IGNORECASE)
            result['experience_years'] = int(years_match.group(1)) if years_match else 0

    return result


def parse_resume_file(filepath: str) -> Dict:
    """Parse a resume file and return structured data"""
    text = extract_text_from_file(filepath)
    if not text:
        logger.warning(f"No text extracted from resume: {filepath}")
        result = _empty_result()
        result['text'] = ''
        return result

    result = parse_resume_text(text)
    result['text'] = text
    logger.info(f"Parsed resume {os.path.basename(filepath)}: {len(result['skills'])} skills, "
                f"{result['experience_years']} years")
    return result


def apply_resume_to_profile(profile, parsed: Dict) -> None:
    """Merge parsed resume data into a JobSeekerProfile without overwriting what the candidate typed"""
    existing = list(profile.skills or [])
    seen = {s.lower() for s in existing}
    for skill in parsed.get('skills') or []:
        if skill and skill.lower() not in seen:
            seen.add(skill.lower())
            existing.append(skill)
    profile.skills = existing

    if not profile.experience_years and parsed.get('experience_years'):
        profile.experience_years = parsed['experience_years']
    if not profile.current_location and parsed.get('location'):
        profile.current_location = parsed['location']
    if not profile.headline and parsed.get('headline'):
        profile.headline = parsed['headline']
    if not profile.summary and parsed.get('summary'):
        profile.summary = parsed['summary']
    if not profile.languages and parsed.get('languages'):
        profile.languages = parsed['languages']
