"""
wcpilot/api/instances.py

Purpose: Instance lifecycle endpoints

- Create / list / get / pairing code / update / delete
- Every route acts on behalf of the authenticated tenant
"""

from fastapi import APIRouter, Depends, status

from wcpilot.api.deps import get_current_identity, get_instance_service
from wcpilot.core.exceptions import PartialUpdateError
from wcpilot.core.security import Identity
from wcpilot.schemas.instance import CreateInstanceRequest, UpdateInstanceRequest
from wcpilot.schemas.response import SuccessResponse
from wcpilot.services.instance_service import InstanceService

router = APIRouter(prefix="/instances")


@router.post("", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_instance(
    body: CreateInstanceRequest,
    identity: Identity = Depends(get_current_identity),
    instances: InstanceService = Depends(get_instance_service),
):
    created = await instances.create_instance(identity.user_id, body.instance_name, body.integration)
    return SuccessResponse(data=created, message="Instance created successfully")


@router.get("", response_model=SuccessResponse)
async def list_instances(
    identity: Identity = Depends(get_current_identity),
    instances: InstanceService = Depends(get_instance_service),
):
    return SuccessResponse(data=await instances.list_instances(identity.user_id))


@router.get("/{instance_name}", response_model=SuccessResponse)
async def get_instance(
    instance_name: str,
    identity: Identity = Depends(get_current_identity),
    instances: InstanceService = Depends(get_instance_service),
):
    return SuccessResponse(data=await instances.get_instance(identity.user_id, instance_name))


@router.get("/{instance_name}/qr", response_model=SuccessResponse)
async def get_pairing_code(
    instance_name: str,
    identity: Identity = Depends(get_current_identity),
    instances: InstanceService = Depends(get_instance_service),
):
    return SuccessResponse(data=await instances.get_pairing_code(identity.user_id, instance_name))


@router.put("/{instance_name}", response_model=SuccessResponse)
async def update_instance(
    instance_name: str,
    body: UpdateInstanceRequest,
    identity: Identity = Depends(get_current_identity),
    instances: InstanceService = Depends(get_instance_service),
):
    outcome = await instances.update_instance(
        identity.user_id,
        instance_name,
        profile_name=body.profile_name,
        profile_picture_url=body.profile_picture_url,
    )
    if not outcome.success:
        raise PartialUpdateError("Some updates failed", details=outcome.failed)

    return SuccessResponse(data=outcome.results, message="Instance updated successfully")


@router.delete("/{instance_name}", response_model=SuccessResponse)
async def delete_instance(
    instance_name: str,
    identity: Identity = Depends(get_current_identity),
    instances: InstanceService = Depends(get_instance_service),
):
    deleted = await instances.delete_instance(identity.user_id, instance_name)
    return SuccessResponse(data=deleted, message="Instance deleted successfully")
