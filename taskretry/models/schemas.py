"""
传输格式 Pydantic 模型定义模块

本模块定义失败记录与转移消息在进程边界上的 JSON 形态，使用 Pydantic
进行数据验证和序列化。领域对象 (FailureRecord / TransitionMessage) 与
传输模型之间通过 dump_* / load_* 函数转换。

传输格式:
    FailureRecord:     {"timestamp": <RFC3339>, "error": <string>}
    TransitionMessage: {"code": "Run"|"Sleep"|"Fail", "until"?: <RFC3339>, "error"?: <string>}

转换规则:
    - 内部 ERROR 代码输出为 "Fail" (它只用于请求 Fail 转移)
    - cause 输出为 str(cause)；读入时 "exceeded error rate" 还原为哨兵实例
    - until / error 为空时不输出

类/函数清单:
    - FailureRecordSchema(timestamp, error)
    - TransitionMessageSchema(code, until?, error?)
        验证器: check_until: Sleep 必须带 until，其余 code 不允许带
    - dump_history(history) -> list[dict]
    - load_history(payload) -> tuple[FailureRecord, ...]
    - dump_message(message) -> dict
    - load_message(payload) -> TransitionMessage

使用示例:
    payload = dump_message(message)
    json.dumps(payload)

    history = load_history(json.loads(raw))
"""

from datetime import datetime
from typing import Any, Iterable, Literal, Sequence

from pydantic import BaseModel, ValidationError, model_validator

from .errors import EXCEEDED_ERROR_RATE, SchemaError
from .failure import FailureRecord
from .message import MessageCode, TransitionMessage


class FailureRecordSchema(BaseModel):
    """
    失败记录的传输模型

    Attributes:
        timestamp (datetime): 失败发生时间
        error (str): 失败原因
    """

    timestamp: datetime
    error: str


class TransitionMessageSchema(BaseModel):
    """
    转移消息的传输模型

    Attributes:
        code (str): "Run" / "Sleep" / "Fail"
        until (datetime | None): Sleep 截止时间
        error (str | None): 转移原因
    """

    code: Literal["Run", "Sleep", "Fail"]
    until: datetime | None = None
    error: str | None = None

    @model_validator(mode="after")
    def check_until(self) -> "TransitionMessageSchema":
        if self.code == "Sleep" and self.until is None:
            raise ValueError("Sleep 消息必须带 until")
        if self.code != "Sleep" and self.until is not None:
            raise ValueError(f"{self.code} 消息不能带 until")
        return self


def dump_history(history: Sequence[FailureRecord]) -> list[dict[str, Any]]:
    """将失败历史转换为可 JSON 序列化的字典列表"""
    return [
        FailureRecordSchema(
            timestamp=record.occurred_at, error=record.description
        ).model_dump(mode="json")
        for record in history
    ]


def load_history(payload: Iterable[dict[str, Any]]) -> tuple[FailureRecord, ...]:
    """
    从字典列表解析失败历史

    Raises:
        SchemaError: 任一条目缺字段或类型错误
    """
    records = []
    for index, item in enumerate(payload):
        try:
            schema = FailureRecordSchema.model_validate(item)
        except ValidationError as e:
            raise SchemaError(
                f"第 {index} 条失败记录格式错误", details={"errors": e.errors()}
            ) from e
        records.append(FailureRecord(schema.timestamp, schema.error))
    return tuple(records)


def dump_message(message: TransitionMessage) -> dict[str, Any]:
    """将转移消息转换为可 JSON 序列化的字典"""
    schema = TransitionMessageSchema(
        code=message.transition.value,
        until=message.until,
        error=str(message.cause) if message.cause is not None else None,
    )
    return schema.model_dump(mode="json", exclude_none=True)


def load_message(payload: dict[str, Any]) -> TransitionMessage:
    """
    从字典解析转移消息

    Raises:
        SchemaError: code 未知、缺字段或 until 与 code 不一致
    """
    try:
        schema = TransitionMessageSchema.model_validate(payload)
    except ValidationError as e:
        raise SchemaError("转移消息格式错误", details={"errors": e.errors()}) from e

    cause: BaseException | str | None = schema.error
    if cause == str(EXCEEDED_ERROR_RATE):
        cause = EXCEEDED_ERROR_RATE
    return TransitionMessage(MessageCode(schema.code), until=schema.until, cause=cause)
