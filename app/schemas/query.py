"""Schemas for the ask endpoints and the agent's structured response."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class AskRequest(BaseModel):
    """Request body for POST /ask and POST /ask-sync."""

    query: str = Field(..., min_length=1, description="Free-text user query.")


class Reference(BaseModel):
    """One cited source file with the pages it was cited on (no duplicate pages, first-seen order)."""

    model_config = ConfigDict(populate_by_name=True)

    file_id: str = Field(..., alias="fileId", description="Identifier of the source file.")
    page_numbers: list[str] = Field(default_factory=list, alias="pageNumbers")


class SideDatum(BaseModel):
    """Structured output attached next to the answer text: a reference list or a chart descriptor."""

    kind: Literal["reference", "chart"]
    payload: list[Reference] | dict[str, Any] = Field(
        ..., description="list[Reference] for kind=reference, chart descriptor for kind=chart."
    )


class AgentResponse(BaseModel):
    """Final response: the reassembled streamed answer plus side data in invocation order."""

    answer: str = Field(..., description="Full answer, equal to the concatenation of streamed increments.")
    data: list[SideDatum] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "answer": "Employees can work remotely up to 3 days per week [1 - Page 7, 8].",
                    "data": [
                        {"kind": "reference", "payload": [{"fileId": "doc_002", "pageNumbers": ["7", "8"]}]}
                    ],
                }
            ]
        }
    )
