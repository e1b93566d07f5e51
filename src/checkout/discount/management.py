"""Coupon administration: commands and handler for creating and deactivating discounts."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from checkout.discount.discount import Discount, DiscountType
from checkout.domain import checkout


@checkout.command(part_of="Discount")
class CreateDiscount:
    coupon_code = String(required=True, max_length=50)
    description = String(max_length=500)
    discount_type = String(required=True, choices=DiscountType)
    value = Float(required=True, min_value=0.0)
    min_cart_value = Float(default=0.0)
    max_uses = Integer(min_value=0)
    max_uses_per_user = Integer(min_value=0)
    start_date = DateTime()
    end_date = DateTime()


@checkout.command(part_of="Discount")
class DeactivateDiscount:
    discount_id = Identifier(required=True)


@checkout.command_handler(part_of=Discount)
class DiscountCommandHandler:
    @handle(CreateDiscount)
    def create_discount(self, command):
        repo = current_domain.repository_for(Discount)
        if repo.by_code(command.coupon_code) is not None:
            raise ValidationError({"coupon_code": [f"Coupon {command.coupon_code.upper()} already exists"]})

        discount = Discount.create(
            coupon_code=command.coupon_code,
            description=command.description,
            discount_type=command.discount_type,
            value=command.value,
            min_cart_value=command.min_cart_value,
            max_uses=command.max_uses,
            max_uses_per_user=command.max_uses_per_user,
            start_date=command.start_date,
            end_date=command.end_date,
        )
        repo.add(discount)
        return str(discount.id)

    @handle(DeactivateDiscount)
    def deactivate_discount(self, command):
        repo = current_domain.repository_for(Discount)
        discount = repo.get(command.discount_id)
        discount.deactivate()
        repo.add(discount)
