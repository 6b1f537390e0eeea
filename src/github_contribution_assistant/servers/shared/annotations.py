from typing import Annotated

from pydantic import Field

URL_DESCRIPTION = "The repository to work with: `owner/name`, `github.com/owner/name` or https://github.com/owner/name."
URL = Annotated[str, Field(description=URL_DESCRIPTION)]

QUESTION_DESCRIPTION = "The question to answer about the repository, for example 'What are good first issues?'."
QUESTION = Annotated[str, Field(description=QUESTION_DESCRIPTION)]
