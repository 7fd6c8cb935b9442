# Models package - normalized database models
from projecthub.models.user import User, UserRole, LoginType
from projecthub.models.company import Company, CompanyUser, CompanyStatus
from projecthub.models.project import Project, ProjectMember, ProjectFeature, ProjectStatus
from projecthub.models.feature import (
    Feature, FeatureAssignee, FeatureComment, FeatureStatus, FeaturePriority
)
