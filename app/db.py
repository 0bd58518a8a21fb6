from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from tortoise import fields
from tortoise.models import Model

ModelT = TypeVar("ModelT", bound=Model)
SchemaT = TypeVar("SchemaT", bound=BaseModel)


class AbstractModel(Model):
    id = fields.UUIDField(primary_key=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:  # type: ignore
        abstract = True


class CRUD(Generic[ModelT, SchemaT]):
    """
    Generic persistence helper shared by the per-resource CRUD classes.
    Reads return response schemas, never raw ORM rows.
    """

    def __init__(self, model: type[ModelT], schema: type[SchemaT]):
        self.model = model
        self.schema = schema

    def to_schema(self, inst: ModelT) -> SchemaT:
        return self.schema.model_validate(inst, from_attributes=True)

    async def create(self, data: BaseModel | dict) -> SchemaT:
        payload = data.model_dump() if isinstance(data, BaseModel) else data
        inst = await self.model.create(**payload)
        return self.to_schema(inst)

    async def update_by(self, data: BaseModel | dict, **filters: Any) -> SchemaT | None:
        payload = (
            data.model_dump(exclude_unset=True) if isinstance(data, BaseModel) else data
        )
        inst = await self.model.get_or_none(**filters)
        if inst is None:
            return None
        inst.update_from_dict(payload)
        await inst.save()
        return self.to_schema(inst)

    async def delete_by(self, **filters: Any) -> bool:
        deleted = await self.model.filter(**filters).delete()
        return deleted > 0
