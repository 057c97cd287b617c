from typing import Any

from pydantic import BaseModel, ConfigDict, Field

class SqlGenerateIn(BaseModel):
    question: str = Field(default="", max_length=4000)

class SqlGenerateOut(BaseModel):
    sql: str

class SqlExecuteIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sql_query: str = Field(default="", max_length=20000, alias="sqlQuery")

class SqlExecuteOut(BaseModel):
    columns: list[str]
    rows: list[dict[str, Any]]
