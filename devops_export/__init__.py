"""Export commits and work items from an Azure DevOps project to local JSON files."""
