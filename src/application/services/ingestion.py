import pandas as pd
import logging
import requests
import io
import os

from pydantic import ValidationError

from src.extensions import db
from src.domain.models import Employee, Survey, Question, Response
from src.domain.schemas import AnswerRowSchema

# Configure structured logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class IngestionService:
    """
    Seeds employees, surveys and responses from an answers CSV
    (semicolon separated, one row per answer).
    Employees are upserted; responses already stored are skipped.
    The whole run is committed or rolled back as one unit.
    """

    DEFAULT_URL = os.getenv("SEED_DATA_URL", "https://example.com/culture-app/answers.csv")
    DEFAULT_CACHE_PATH = "answers.csv"

    RATING_VALUES = {'1', '2', '3', '4', '5'}

    @staticmethod
    def run_pipeline(source_url: str = DEFAULT_URL,
                     force_local: bool = False,
                     local_cache_path: str = DEFAULT_CACHE_PATH) -> dict:
        """
        Main entry point.

        Args:
            source_url: Remote URL to fetch CSV.
            force_local: If True, skips download and uses local cache.
            local_cache_path: Path to save/load the CSV (Production vs Test isolation).
        """
        logger.info("🚀 [Pipeline] Starting seed ingestion...")
        stats = {"employees": 0, "surveys": 0, "created": 0, "skipped": 0, "errors": 0}

        try:
            df = IngestionService._load_data(source_url, force_local, local_cache_path)
            rows, stats['errors'] = IngestionService._validate_rows(df)

            stats['employees'] = IngestionService._process_employees(rows)
            stats['surveys'], question_cache = IngestionService._process_surveys(rows)
            created, skipped = IngestionService._process_responses(rows, question_cache)
            stats['created'] = created
            stats['skipped'] = skipped

            db.session.commit()

            logger.info(f"✅ [Pipeline] Finished. Stats: {stats}")
            return stats

        except Exception as e:
            db.session.rollback()
            logger.error(f"❌ [Pipeline] Critical failure: {str(e)}")
            raise e

    @staticmethod
    def _load_data(url: str, force_local: bool, local_path: str) -> pd.DataFrame:
        """
        Handles data acquisition with a fallback strategy (Network -> Local Cache).
        """
        csv_content = None

        if not force_local:
            try:
                logger.info("📡 [Extract] Downloading data from remote source...")
                response = requests.get(url, timeout=30)
                response.raise_for_status()

                # Update local cache
                with open(local_path, 'w', encoding='utf-8') as f:
                    f.write(response.text)

                csv_content = io.StringIO(response.text)
                logger.info(f"   -> Download successful. Cache updated at {local_path}.")

            except requests.RequestException as e:
                logger.warning(f"   -> Remote fetch failed ({e}). Falling back to local cache.")

        # Fallback to local file
        if csv_content is None:
            if os.path.exists(local_path):
                logger.info(f"📂 [Extract] Loading from local cache: {local_path}")
                csv_content = local_path
            else:
                error_msg = f"Critical: Remote fetch failed and no local cache found at {local_path}."
                raise FileNotFoundError(error_msg)

        return pd.read_csv(csv_content, sep=';', dtype=str).fillna('')

    @staticmethod
    def _validate_rows(df: pd.DataFrame) -> tuple:
        rows = []
        errors = 0
        for index, row in df.iterrows():
            try:
                rows.append(AnswerRowSchema(**row.to_dict()))
            except ValidationError as e:
                errors += 1
                logger.warning(f"   -> Invalid row {index}: {e.error_count()} validation error(s)")
        return rows, errors

    @staticmethod
    def _process_employees(rows: list) -> int:
        logger.info("🏗️ [Structural] Syncing Employees...")
        emp_cache = {e.email: e for e in Employee.query.all()}
        synced = set()

        for dto in rows:
            if dto.email in synced:
                continue

            employee = emp_cache.get(dto.email)
            if employee is None:
                employee = Employee(email=dto.email)
                db.session.add(employee)
                emp_cache[dto.email] = employee

            employee.name = dto.name
            employee.team = dto.team
            employee.gender = dto.gender
            employee.date_of_birth = dto.date_of_birth
            synced.add(dto.email)

        db.session.flush()
        return len(synced)

    @staticmethod
    def _process_surveys(rows: list) -> tuple:
        """
        Creates missing surveys and questions.
        A new question is typed 'rating' when every seeded answer is an integer 1-5.
        Returns (surveys touched, {(survey title, question text): (survey_id, question_id)}).
        """
        logger.info("📅 [Structural] Syncing Surveys...")
        survey_cache = {s.title: s for s in Survey.query.all()}

        answers_by_question = {}
        for dto in rows:
            key = (dto.survey_title, dto.question)
            answers_by_question.setdefault(key, set()).add(dto.answer.strip())

        question_cache = {}
        touched = set()
        for (title, text), answers in answers_by_question.items():
            survey = survey_cache.get(title)
            if survey is None:
                survey = Survey(title=title, description=f"Imported survey: {title}")
                db.session.add(survey)
                survey_cache[title] = survey

            question = next((q for q in survey.questions if q.text == text), None)
            if question is None:
                q_type = 'rating' if answers <= IngestionService.RATING_VALUES else 'text'
                question = Question(text=text, type=q_type, options=[], position=len(survey.questions))
                survey.questions.append(question)

            db.session.flush()
            question_cache[(title, text)] = (survey.id, question.id)
            touched.add(title)

        return len(touched), question_cache

    @staticmethod
    def _process_responses(rows: list, question_cache: dict) -> tuple:
        """One Response per (email, survey, submitted_at) group."""
        logger.info("🧠 [Transactional] Syncing Responses...")

        df = pd.DataFrame([
            {
                'email': dto.email,
                'survey': dto.survey_title,
                'submitted_at': dto.submitted_at,
                'question': dto.question,
                'answer': dto.answer,
            }
            for dto in rows
        ])
        if df.empty:
            return 0, 0

        created_count = 0
        skipped_count = 0

        for (email, title, submitted_at), group in df.groupby(['email', 'survey', 'submitted_at']):
            submitted_at = pd.Timestamp(submitted_at).to_pydatetime()
            survey_id = question_cache[(title, group.iloc[0]['question'])][0]

            exists = Response.query.filter_by(email=email, survey_id=survey_id, timestamp=submitted_at).first()
            if exists:
                skipped_count += 1
                continue

            answers = {
                str(question_cache[(title, q)][1]): a
                for q, a in zip(group['question'], group['answer'])
            }
            db.session.add(Response(email=email, survey_id=survey_id, answers=answers, timestamp=submitted_at))
            created_count += 1

        db.session.flush()
        return created_count, skipped_count
