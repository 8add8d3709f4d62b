import hashlib
import logging
import struct

from landfire.config_reader import LandfireConfig
from landfire.errors import EmptyLayerSet, MissingRequesterIdentity
from landfire.utils.aoi import normalize_area_of_interest

logger = logging.getLogger(__name__)

# Optional job fields, in hashing order, with their LFPS wire names
OPTIONAL_FIELDS = (
    ('output_projection', 'Output_Projection'),
    ('resample_resolution', 'Resample_Resolution'),
    ('edit_rule', 'Edit_Rule'),
    ('edit_mask', 'Edit_Mask'),
    ('priority_code', 'Priority_Code'),
)

_NONE_TAG = b'\x00'
_STR_TAG = b'\x01'
_INT_TAG = b'\x02'


def _hash_bytes(h, tag, data):
    h.update(tag)
    h.update(struct.pack('>Q', len(data)))
    h.update(data)


def _hash_field(h, value):
    if value is None:
        h.update(_NONE_TAG)
    elif isinstance(value, int) and not isinstance(value, bool):
        _hash_bytes(h, _INT_TAG, str(value).encode('ascii'))
    else:
        _hash_bytes(h, _STR_TAG, str(value).encode('utf-8'))


def content_hash(job):
    """
    Deterministic 64-bit fingerprint of a job's semantic fields.

    Fields are fed in a fixed order: email, then (name, layer code, version)
    for each layer in the job's order, then the area of interest, then each
    optional field. Every field is tagged and length-framed, so ``None`` and
    ``''`` hash differently and no two field sequences share an encoding.

    :param job: a :class:`Job`
    :return: int in ``[0, 2**64)``
    """
    h = hashlib.blake2b(digest_size=8, person=b'landfire.job')
    _hash_field(h, job.email)
    h.update(struct.pack('>Q', len(job.layers)))
    for layer in job.layers:
        _hash_field(h, layer.name)
        _hash_field(h, layer.layer)
        _hash_field(h, layer.version)
    _hash_field(h, job.area_of_interest)
    for name, _ in OPTIONAL_FIELDS:
        _hash_field(h, getattr(job, name))
    return int.from_bytes(h.digest(), 'big')


class Job:
    """
    Sample Usage:

    prods = lf.products(name='13 Anderson Fire Behavior Fuel Models')
    job = Job(prods, BoundingBox(-105.69, -105.05, 39.91, 40.26), email='me@example.org')
    print(job.hexdigest)
    job_id = lf.submit_job(job)

    Jobs are immutable. Two jobs with the same email, the same layers in the
    same order, the same area of interest and the same options are equal and
    share a content hash, which keys the local dataset cache.
    """
    def __init__(self, layers, area_of_interest, email=None, *, output_projection=None, resample_resolution=None,
                 edit_rule=None, edit_mask=None, priority_code=None, config: LandfireConfig = None):
        if not email:
            if config is None:
                config = LandfireConfig()
            email = config.email
        if not email:
            raise MissingRequesterIdentity()

        layers = tuple(layers or ())
        if not layers:
            raise EmptyLayerSet()

        if resample_resolution is not None:
            if isinstance(resample_resolution, bool) or not isinstance(resample_resolution, int) \
                    or resample_resolution <= 0:
                raise ValueError(f"resample_resolution must be a positive integer, got {resample_resolution!r}")

        self.__email = email
        self.__layers = layers
        self.__area_of_interest = normalize_area_of_interest(area_of_interest)
        self.__output_projection = output_projection
        self.__resample_resolution = resample_resolution
        self.__edit_rule = edit_rule
        self.__edit_mask = edit_mask
        self.__priority_code = priority_code
        self.__hash = content_hash(self)
        logger.debug(f"Built job {self.hexdigest} for layers {[layer.layer for layer in layers]}")

    def to_payload(self):
        """
        Sample:
        {'Email': 'me@example.org', 'Layer_List': '240FBFM13;240EVT', 'Area_of_Interest': '-105.69 39.91 -105.05 40.26'}
        """
        payload = {
            'Email': self.email,
            'Layer_List': ';'.join(layer.layer for layer in self.layers),
            'Area_of_Interest': self.area_of_interest,
        }
        for name, wire_name in OPTIONAL_FIELDS:
            value = getattr(self, name)
            if value is not None:
                payload[wire_name] = value
        return payload

    def _key(self):
        return (
            self.email,
            tuple((layer.name, layer.layer, layer.version) for layer in self.layers),
            self.area_of_interest,
            tuple(getattr(self, name) for name, _ in OPTIONAL_FIELDS),
        )

    def __eq__(self, other):
        if not isinstance(other, Job):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return self.__hash

    def __str__(self):
        return str({
            'hash': self.hexdigest,
            'email': self.email,
            'layers': [layer.layer for layer in self.layers],
            'area_of_interest': self.area_of_interest,
            **{name: getattr(self, name) for name, _ in OPTIONAL_FIELDS if getattr(self, name) is not None},
        })

    def __repr__(self):
        return f"Job({self.__str__()})"

    @property
    def content_hash(self):
        return self.__hash

    @property
    def hexdigest(self):
        return f"{self.__hash:016x}"

    @property
    def email(self):
        return self.__email

    @property
    def layers(self):
        return self.__layers

    @property
    def area_of_interest(self):
        return self.__area_of_interest

    @property
    def output_projection(self):
        return self.__output_projection

    @property
    def resample_resolution(self):
        return self.__resample_resolution

    @property
    def edit_rule(self):
        return self.__edit_rule

    @property
    def edit_mask(self):
        return self.__edit_mask

    @property
    def priority_code(self):
        return self.__priority_code
