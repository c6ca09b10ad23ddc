from .catalog import Category, Product, ProductOption, OptionItem
from .tags import Tag, TagType, product_tags, option_tags, item_tags
from .tenancy import Commerce
from .auth import User, Role

__all__ = [
    'Commerce',
    'User', 'Role',
    'Category', 'Product', 'ProductOption', 'OptionItem',
    'Tag', 'TagType', 'product_tags', 'option_tags', 'item_tags',
]
