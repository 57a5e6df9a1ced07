from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from typing import Any, Iterable

from botocore.exceptions import ClientError

from src.adapters.aws import dynamodb_client
from src.adapters.persistence.vehicle_documents import (
    vehicle_from_document,
    vehicle_to_document,
)
from src.app.ports.output import IVehicleStateStore
from src.domain.algorithms.route_progress import route_includes_stop
from src.domain.exceptions import DuplicateVehicle, PersistenceConflict
from src.domain.models import VehicleState, VehicleStatus


def _is_conditional_failure(exc: ClientError) -> bool:
    code = exc.response.get("Error", {}).get("Code")
    return code == "ConditionalCheckFailedException"


@dataclass(slots=True)
class DynamoDbVehicleStateStore(IVehicleStateStore):
    """Stores vehicle documents in DynamoDB.

    Items carry the full document as JSON plus a few top-level attributes
    (status, route_number, version). Writes are last-writer-wins; `save`
    only requires the item to still exist. The top-level `version` is
    authoritative and is bumped atomically on every save.

    Env vars:
      - DDB_VEHICLES_TABLE (default: bustrack-vehicles)
      - ENDPOINT_URL (preferred for LocalStack)
      - AWS_REGION
    """

    table_name: str | None = None

    def _table(self) -> str:
        return (
            self.table_name or os.getenv("DDB_VEHICLES_TABLE") or "bustrack-vehicles"
        )

    @staticmethod
    def _vehicle(item: dict[str, Any]) -> VehicleState:
        vehicle = vehicle_from_document(json.loads(item["doc"]["S"]))
        version = item.get("version", {}).get("N")
        return replace(vehicle, version=int(version)) if version else vehicle

    @staticmethod
    def _item(vehicle: VehicleState) -> dict[str, Any]:
        return {
            "id": {"S": vehicle.id},
            "status": {"S": vehicle.status.value},
            "route_number": {"S": vehicle.route_number},
            "version": {"N": str(vehicle.version)},
            "doc": {"S": json.dumps(vehicle_to_document(vehicle))},
        }

    def get(self, vehicle_id: str) -> VehicleState | None:
        ddb = dynamodb_client()
        resp = ddb.get_item(
            TableName=self._table(),
            Key={"id": {"S": vehicle_id}},
            ConsistentRead=True,
        )
        item = resp.get("Item")
        if not item or "S" not in item.get("doc", {}):
            return None
        return self._vehicle(item)

    def create(self, vehicle: VehicleState) -> VehicleState:
        stored = replace(vehicle, version=1)
        ddb = dynamodb_client()
        try:
            ddb.put_item(
                TableName=self._table(),
                Item=self._item(stored),
                ConditionExpression="attribute_not_exists(id)",
            )
        except ClientError as exc:
            if _is_conditional_failure(exc):
                raise DuplicateVehicle(f"Vehicle {vehicle.id} already exists") from exc
            raise
        return stored

    def save(self, vehicle: VehicleState) -> VehicleState:
        ddb = dynamodb_client()
        try:
            resp = ddb.update_item(
                TableName=self._table(),
                Key={"id": {"S": vehicle.id}},
                UpdateExpression=(
                    "SET #doc = :doc, #status = :status, #route_number = :route_number "
                    "ADD #version :one"
                ),
                ConditionExpression="attribute_exists(id)",
                ExpressionAttributeNames={
                    "#doc": "doc",
                    "#status": "status",
                    "#route_number": "route_number",
                    "#version": "version",
                },
                ExpressionAttributeValues={
                    ":doc": {"S": json.dumps(vehicle_to_document(vehicle))},
                    ":status": {"S": vehicle.status.value},
                    ":route_number": {"S": vehicle.route_number},
                    ":one": {"N": "1"},
                },
                ReturnValues="UPDATED_NEW",
            )
        except ClientError as exc:
            if _is_conditional_failure(exc):
                raise PersistenceConflict(
                    f"Vehicle {vehicle.id} vanished before save"
                ) from exc
            raise
        return replace(vehicle, version=int(resp["Attributes"]["version"]["N"]))

    def delete(self, vehicle_id: str) -> bool:
        ddb = dynamodb_client()
        resp = ddb.delete_item(
            TableName=self._table(),
            Key={"id": {"S": vehicle_id}},
            ReturnValues="ALL_OLD",
        )
        return bool(resp.get("Attributes"))

    def find(
        self,
        *,
        status_in: Iterable[VehicleStatus] | None = None,
        route_number: str | None = None,
        serving_stop_id: str | None = None,
    ) -> tuple[VehicleState, ...]:
        statuses = set(status_in) if status_in is not None else None

        ddb = dynamodb_client()
        paginator = ddb.get_paginator("scan")

        out: list[VehicleState] = []
        for page in paginator.paginate(TableName=self._table()):
            for item in page.get("Items", []) or []:
                if "S" not in item.get("doc", {}):
                    continue
                vehicle = self._vehicle(item)
                if statuses is not None and vehicle.status not in statuses:
                    continue
                if route_number is not None and vehicle.route_number != route_number:
                    continue
                if serving_stop_id is not None and not route_includes_stop(
                    vehicle.route, serving_stop_id
                ):
                    continue
                out.append(vehicle)
        return tuple(out)
