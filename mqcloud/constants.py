__version__ = '1.0.0'

DEFAULT_SERVICE_NAME = 'mqcloud'
DEFAULT_SERVICE_URL = 'https://api.private.eu-de.mq2.cloud.ibm.com'
DEFAULT_IAM_URL = 'https://iam.cloud.ibm.com'
