# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Entity families of the model document (machines, applications, storage, etc.)."""

from modeldesc.model.actions import Action, ActionMessage, Operation
from modeldesc.model.address import Address
from modeldesc.model.application import (
    Application,
    ApplicationOffer,
    ExposedEndpoint,
    ProvisioningState,
    StorageDirective,
)
from modeldesc.model.blockdevice import BlockDevice
from modeldesc.model.cloud import CloudContainer, CloudCredential, CloudImageMetadata, CloudService
from modeldesc.model.cloudinstance import CloudInstance
from modeldesc.model.constraints import Constraints, new_constraints
from modeldesc.model.document import CURRENT_MODEL_VERSION, SLA, MeterStatus, Model, import_model, model_to_dict
from modeldesc.model.leases import Lease
from modeldesc.model.machine import Machine
from modeldesc.model.networking import IPAddress, LinkLayerDevice, Space, SSHHostKey, Subnet, VirtualHostKey
from modeldesc.model.portranges import PortRange
from modeldesc.model.relation import Endpoint, Relation
from modeldesc.model.remote import (
    ExternalController,
    FirewallRule,
    OfferConnection,
    RelationNetwork,
    RemoteApplication,
    RemoteEndpoint,
    RemoteEntity,
    RemoteSpace,
    RemoteSubnet,
)
from modeldesc.model.resources import Payload, Resource, ResourceRevision, UnitResource
from modeldesc.model.secrets import (
    RemoteSecret,
    Secret,
    SecretAccess,
    SecretConsumer,
    SecretRemoteConsumer,
    SecretRevision,
    SecretValueRef,
)
from modeldesc.model.status import Status, StatusHistory
from modeldesc.model.storage import (
    Filesystem,
    FilesystemAttachment,
    Storage,
    StoragePool,
    Volume,
    VolumeAttachment,
    VolumeAttachmentPlan,
    VolumePlanInfo,
)
from modeldesc.model.tags import Tag, parse_tag
from modeldesc.model.tools import AgentTools
from modeldesc.model.unit import CAAS, IAAS, Unit
from modeldesc.model.users import User, UserAuthorizedKeys, UserRemovedLogEntry

__all__ = [
    # Root document
    "Model",
    "SLA",
    "MeterStatus",
    "CURRENT_MODEL_VERSION",
    "import_model",
    "model_to_dict",
    # Shared
    "Status",
    "StatusHistory",
    "Constraints",
    "new_constraints",
    "AgentTools",
    "Address",
    "Tag",
    "parse_tag",
    # Machines
    "Machine",
    "BlockDevice",
    "CloudInstance",
    "PortRange",
    # Applications
    "IAAS",
    "CAAS",
    "Application",
    "ApplicationOffer",
    "ExposedEndpoint",
    "ProvisioningState",
    "StorageDirective",
    "Unit",
    "Resource",
    "ResourceRevision",
    "UnitResource",
    "Payload",
    "CloudService",
    "CloudContainer",
    "Relation",
    "Endpoint",
    # Networking
    "Space",
    "Subnet",
    "LinkLayerDevice",
    "IPAddress",
    "SSHHostKey",
    "VirtualHostKey",
    # Cross-model
    "RemoteApplication",
    "RemoteEndpoint",
    "RemoteSpace",
    "RemoteSubnet",
    "RemoteEntity",
    "RelationNetwork",
    "OfferConnection",
    "ExternalController",
    "FirewallRule",
    # Storage
    "Storage",
    "Volume",
    "VolumeAttachment",
    "VolumeAttachmentPlan",
    "VolumePlanInfo",
    "Filesystem",
    "FilesystemAttachment",
    "StoragePool",
    # Everything else
    "User",
    "UserRemovedLogEntry",
    "UserAuthorizedKeys",
    "Lease",
    "Action",
    "ActionMessage",
    "Operation",
    "Secret",
    "SecretValueRef",
    "SecretRevision",
    "SecretAccess",
    "SecretConsumer",
    "SecretRemoteConsumer",
    "RemoteSecret",
    "CloudCredential",
    "CloudImageMetadata",
]
