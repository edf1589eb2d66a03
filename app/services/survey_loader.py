"""Survey definition loader with caching and validation.

This module loads survey definitions from YAML files, validates them against
Pydantic schemas, and caches the results. Definitions are templates an
administrator can import as new surveys.
"""

from pathlib import Path
from functools import lru_cache
from typing import Optional
import yaml
from pydantic import ValidationError

from app.config import get_settings
from app.schemas.survey import SurveyDefinition
from app.logging_config import get_logger

logger = get_logger(__name__)


class SurveyDefinitionNotFoundError(Exception):
    """Raised when a survey definition file is not found."""
    pass


class SurveyValidationError(Exception):
    """Raised when survey or question data fails validation."""
    pass


class SurveyLoader:
    """Service for loading and caching YAML survey definitions.

    Example definition (``surveys/city_hall_approval.yaml``):

        name: City Hall Approval
        city: Sao Paulo
        state: SP
        date: "2024-09-01"
        contractor: Instituto Exemplo
        current_manager:
          type: Prefeito
          name: Joao Silva
        questions:
          - text: Do you approve of the current administration?
            type: multiple_choice
            options: ["Yes", "No", "Undecided"]
            required: true
    """

    def __init__(self, surveys_dir: Optional[str] = None):
        """Initialize survey loader.

        Args:
            surveys_dir: Path to definitions directory (defaults to settings.surveys_dir)
        """
        if surveys_dir is None:
            surveys_dir = get_settings().surveys_dir

        self.surveys_dir = Path(surveys_dir)

        if not self.surveys_dir.exists():
            logger.warning(f"Surveys directory not found: {self.surveys_dir}")

    @lru_cache(maxsize=128)
    def load_definition(self, definition_id: str) -> SurveyDefinition:
        """Load and validate a survey definition from a YAML file.

        Results are cached. Clear cache with clear_cache() if files change.

        Args:
            definition_id: File name without the .yaml extension

        Returns:
            Validated SurveyDefinition

        Raises:
            SurveyDefinitionNotFoundError: If the file doesn't exist
            SurveyValidationError: If the file fails parsing or validation
        """
        if not definition_id.replace("_", "").replace("-", "").isalnum():
            raise SurveyDefinitionNotFoundError(f"Invalid survey definition ID '{definition_id}'")

        yaml_path = self.surveys_dir / f"{definition_id}.yaml"

        if not yaml_path.exists():
            logger.error(f"Survey definition not found: {yaml_path}")
            raise SurveyDefinitionNotFoundError(f"Survey definition '{definition_id}' not found at {yaml_path}")

        try:
            with open(yaml_path, 'r', encoding='utf-8') as f:
                raw_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"YAML parsing error for {definition_id}: {e}")
            raise SurveyValidationError(f"Invalid YAML in survey definition '{definition_id}': {e}")
        except OSError as e:
            logger.error(f"Error reading survey definition {yaml_path}: {e}")
            raise SurveyValidationError(f"Error reading survey definition '{definition_id}': {e}")

        if not isinstance(raw_data, dict):
            raise SurveyValidationError(f"Survey definition '{definition_id}' must be a mapping")

        try:
            definition = SurveyDefinition(**raw_data)
        except ValidationError as e:
            logger.error(f"Validation error for survey definition {definition_id}: {e}")
            raise SurveyValidationError(f"Validation failed for survey definition '{definition_id}': {e}")

        if definition.id is not None and definition.id != definition_id:
            raise SurveyValidationError(
                f"Survey definition id '{definition.id}' does not match file name '{definition_id}'"
            )

        logger.info(f"Loaded survey definition: {definition_id} ({len(definition.questions)} questions)")
        return definition

    def list_definitions(self) -> list[str]:
        """List all available definition IDs (file names without .yaml)."""
        if not self.surveys_dir.exists():
            return []

        definition_ids = [f.stem for f in self.surveys_dir.glob("*.yaml")]

        logger.debug(f"Found {len(definition_ids)} survey definitions: {definition_ids}")
        return sorted(definition_ids)

    def clear_cache(self):
        """Clear the definition cache."""
        self.load_definition.cache_clear()
        logger.info("Survey definition cache cleared")


# Global singleton instance
_loader_instance: Optional[SurveyLoader] = None


def get_survey_loader() -> SurveyLoader:
    """Get global SurveyLoader instance.

    Creates singleton instance on first call.

    Returns:
        Global SurveyLoader instance
    """
    global _loader_instance
    if _loader_instance is None:
        _loader_instance = SurveyLoader()
    return _loader_instance
