from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Option(BaseModel):
    """보기 하나. id는 선택 상태 매핑의 키로 사용된다."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="보기 식별자 (예: A, B, C)")
    text: str = Field(..., description="보기 내용")


class Question(BaseModel):
    """
    원격 시험 서비스가 내려주는 문제 모델.
    Pydantic v2 적용: 수신 후에는 변경 불가 (frozen).

    와이어 포맷은 camelCase (questionText, multiSelect).
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(
        ...,
        min_length=1,
        description="문제 식별자 (원격 서비스 기준 고유값)"
    )
    question_text: str = Field(
        ...,
        description="발문/문제 내용"
    )
    multi_select: bool = Field(
        default=False,
        description="복수 선택 허용 여부"
    )
    options: List[Option] = Field(
        default_factory=list,
        description="보기 리스트 (순서 유지)"
    )

    @field_validator('options')
    @classmethod
    def validate_unique_option_ids(cls, v: List[Option]) -> List[Option]:
        """
        검증 로직: 한 문제 안에서 보기 id는 중복될 수 없다.
        """
        ids = [o.id for o in v]
        if len(ids) != len(set(ids)):
            raise ValueError(f"보기 id가 중복되었습니다: {ids}")
        return v

    def option_ids(self) -> List[str]:
        return [o.id for o in self.options]
