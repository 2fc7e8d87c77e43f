from blog.models import BlogPost, PublishingFrequency, BlogInsights
from blog.aggregator import aggregate, publishing_trend
