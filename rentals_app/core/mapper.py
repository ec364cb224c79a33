from typing import Iterable, Type, TypeVar

from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)


class ORMMapper:
    @staticmethod
    def one(item, schema: Type[T]) -> T:
        return schema.model_validate(item)

    @staticmethod
    def many(items: Iterable, schema: Type[T]) -> list[T]:
        return [schema.model_validate(item) for item in items]

    def one_json(self, item, schema: Type[T]) -> dict:
        return self.one(item, schema).model_dump(mode="json")

    def many_json(self, items: Iterable, schema: Type[T]) -> list[dict]:
        return [p.model_dump(mode="json") for p in self.many(items, schema)]
